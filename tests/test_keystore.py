"""
Tests for the write-once key store.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

import field_crypt
from field_crypt import (
    KEY_LEN,
    FieldCipher,
    KeyAlreadyInitializedError,
    KeyLengthError,
    KeyNotInitializedError,
    KeyStateError,
    KeyStore,
    MasterKey,
    generate_key,
)


def test_starts_uninitialized():
    store = KeyStore()
    assert not store.is_initialized
    assert "uninitialized" in repr(store)
    with pytest.raises(KeyNotInitializedError):
        store.current_key()


def test_setup_installs_key(zero_key):
    store = KeyStore()
    store.setup(zero_key)
    assert store.is_initialized
    assert store.current_key() == MasterKey(zero_key)


def test_accepts_bytearray():
    store = KeyStore()
    store.setup(bytearray(KEY_LEN))
    assert store.is_initialized


@pytest.mark.parametrize("size", [0, 1, KEY_LEN - 1, KEY_LEN + 1, 2 * KEY_LEN])
def test_setup_rejects_wrong_length(size):
    store = KeyStore()
    with pytest.raises(KeyLengthError):
        store.setup(bytes(size))
    assert not store.is_initialized


def test_second_setup_rejected(zero_key):
    store = KeyStore.with_key(zero_key)
    with pytest.raises(KeyAlreadyInitializedError):
        store.setup(generate_key())
    with pytest.raises(KeyAlreadyInitializedError):
        store.setup(zero_key)
    assert store.current_key() == MasterKey(zero_key)


def test_state_errors_share_base():
    assert issubclass(KeyNotInitializedError, KeyStateError)
    assert issubclass(KeyAlreadyInitializedError, KeyStateError)


def test_repr_does_not_leak_key():
    store = KeyStore.with_key(b"\x7a" * KEY_LEN)
    assert "z" * 4 not in repr(store)
    assert "z" * 4 not in repr(store.current_key())


def test_module_level_setup(fresh_default_store, zero_key):
    with pytest.raises(KeyNotInitializedError):
        field_crypt.current_key()
    field_crypt.setup(zero_key)
    assert field_crypt.default_store() is fresh_default_store
    assert field_crypt.current_key() == MasterKey(zero_key)
    with pytest.raises(KeyAlreadyInitializedError):
        field_crypt.setup(zero_key)


def test_concurrent_setup_installs_exactly_once():
    store = KeyStore()
    barrier = threading.Barrier(8)
    outcomes = []

    def attempt():
        barrier.wait()
        try:
            store.setup(generate_key())
            outcomes.append("installed")
        except KeyAlreadyInitializedError:
            outcomes.append("rejected")

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("installed") == 1
    assert outcomes.count("rejected") == 7


def test_concurrent_encrypt_decrypt(key_store):
    cipher = FieldCipher(key_store)

    def roundtrip(i: int) -> bool:
        payload = f"message {i}".encode()
        nonce, sealed = cipher.encrypt(payload)
        return cipher.decrypt(nonce, sealed) == payload

    with ThreadPoolExecutor(max_workers=8) as pool:
        assert all(pool.map(roundtrip, range(500)))
