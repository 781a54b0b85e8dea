"""
Pytest configuration and fixtures for field encryption tests.
"""

from __future__ import annotations

from typing import Iterator

import pytest

from field_crypt import KEY_LEN, MASTER_KEY_ENV, DocumentCodec, KeyStore, generate_key
from field_crypt import keystore as keystore_module


@pytest.fixture
def zero_key() -> bytes:
    """All-zero master key."""
    return bytes(KEY_LEN)


@pytest.fixture
def key_store(zero_key: bytes) -> KeyStore:
    """Fresh key store with the zero key installed."""
    return KeyStore.with_key(zero_key)


@pytest.fixture
def other_store() -> KeyStore:
    """Key store holding an unrelated random key."""
    return KeyStore.with_key(generate_key())


@pytest.fixture
def codec(key_store: KeyStore) -> DocumentCodec:
    """Document codec bound to the zero-key store."""
    return DocumentCodec(key_store)


@pytest.fixture
def fresh_default_store(monkeypatch: pytest.MonkeyPatch) -> Iterator[KeyStore]:
    """Replace the process-wide store with an empty one for the test."""
    store = KeyStore()
    monkeypatch.setattr(keystore_module, "_default_store", store)
    yield store


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the master key variable is unset for the test."""
    monkeypatch.delenv(MASTER_KEY_ENV, raising=False)
