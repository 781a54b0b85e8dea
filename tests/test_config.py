"""
Tests for loading the master key from the environment.
"""

from __future__ import annotations

import base64
import os

import pytest

from field_crypt import (
    KEY_LEN,
    MASTER_KEY_ENV,
    ConfigError,
    KeyAlreadyInitializedError,
    KeyLengthError,
    KeyStore,
    MasterKey,
    generate_key,
    load_master_key,
    setup_from_env,
)
from field_crypt.config import parse_master_key


@pytest.fixture
def empty_env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text("")
    return path


def test_parse_base64():
    key = generate_key()
    assert parse_master_key(base64.b64encode(key).decode()) == key


def test_parse_hex():
    key = generate_key()
    assert parse_master_key(key.hex()) == key
    assert parse_master_key("  " + key.hex().upper() + "\n") == key


def test_parse_garbage():
    with pytest.raises(ConfigError):
        parse_master_key("definitely not a key")


def test_parse_wrong_length():
    with pytest.raises(KeyLengthError):
        parse_master_key(base64.b64encode(bytes(16)).decode())


def test_missing_variable(clean_env, empty_env_file):
    with pytest.raises(ConfigError):
        load_master_key(empty_env_file)


def test_environment_variable(clean_env, monkeypatch, empty_env_file):
    key = generate_key()
    monkeypatch.setenv(MASTER_KEY_ENV, base64.b64encode(key).decode())
    assert load_master_key(empty_env_file) == key


def test_env_file(clean_env, tmp_path):
    key = generate_key()
    env_file = tmp_path / ".env"
    env_file.write_text(f"{MASTER_KEY_ENV}={key.hex()}\n")
    assert load_master_key(env_file) == key


def test_env_file_value_not_exported(clean_env, tmp_path):
    key = generate_key()
    env_file = tmp_path / ".env"
    env_file.write_text(f"{MASTER_KEY_ENV}={key.hex()}\n")

    store = setup_from_env(env_file, keys=KeyStore())

    assert store.current_key() == MasterKey(key)
    assert MASTER_KEY_ENV not in os.environ


def test_environment_wins_over_env_file(clean_env, monkeypatch, tmp_path):
    from_env = generate_key()
    env_file = tmp_path / ".env"
    env_file.write_text(f"{MASTER_KEY_ENV}={generate_key().hex()}\n")
    monkeypatch.setenv(MASTER_KEY_ENV, from_env.hex())
    assert load_master_key(env_file) == from_env


def test_setup_from_env_into_store(clean_env, monkeypatch, empty_env_file):
    monkeypatch.setenv(MASTER_KEY_ENV, bytes(KEY_LEN).hex())
    store = KeyStore()
    assert setup_from_env(empty_env_file, keys=store) is store
    assert store.current_key() == MasterKey(bytes(KEY_LEN))
    with pytest.raises(KeyAlreadyInitializedError):
        setup_from_env(empty_env_file, keys=store)


def test_setup_from_env_default_store(clean_env, monkeypatch, empty_env_file, fresh_default_store):
    monkeypatch.setenv(MASTER_KEY_ENV, bytes(KEY_LEN).hex())
    assert setup_from_env(empty_env_file) is fresh_default_store
    assert fresh_default_store.is_initialized
