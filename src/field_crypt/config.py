"""
Environment-based key configuration.

FIELD_CRYPT_MASTER_KEY holds the master key as standard base64 or as 64
hex digits. A .env file is read as a fallback; variables already set in the
environment win. The .env value is never copied into os.environ, so
child processes do not inherit it. Keys are only read, never written.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import string
from pathlib import Path
from typing import Optional, Union

from dotenv import dotenv_values

from .crypto import KEY_LEN
from .errors import ConfigError, KeyLengthError
from .keystore import KeyStore, default_store

logger = logging.getLogger(__name__)

MASTER_KEY_ENV = "FIELD_CRYPT_MASTER_KEY"


def parse_master_key(value: str) -> bytes:
    """
    Decode a configured master key.

    Args:
        value: 64 hex digits, or standard base64 of KEY_LEN bytes

    Returns:
        Raw key bytes

    Raises:
        ConfigError: If the value is neither hex nor base64
        KeyLengthError: If the decoded key has the wrong size
    """
    value = value.strip()
    if len(value) == KEY_LEN * 2 and all(c in string.hexdigits for c in value):
        key = bytes.fromhex(value)
    else:
        try:
            key = base64.b64decode(value.encode("ascii"), validate=True)
        except (UnicodeEncodeError, binascii.Error):
            raise ConfigError(f"{MASTER_KEY_ENV} is not valid hex or base64") from None
    if len(key) != KEY_LEN:
        raise KeyLengthError(f"Invalid key size: expected {KEY_LEN}, got {len(key)}")
    return key


def load_master_key(env_file: Optional[Union[str, Path]] = None) -> bytes:
    """
    Read the master key from the environment.

    Args:
        env_file: Optional path to a .env file (searched for if omitted)

    Raises:
        ConfigError: If the variable is missing or cannot be decoded
        KeyLengthError: If the decoded key has the wrong size
    """
    file_values = dotenv_values(env_file)

    value = os.environ.get(MASTER_KEY_ENV) or file_values.get(MASTER_KEY_ENV)
    if not value:
        raise ConfigError(f"{MASTER_KEY_ENV} must be set in environment or .env file")
    return parse_master_key(value)


def setup_from_env(
    env_file: Optional[Union[str, Path]] = None,
    keys: Optional[KeyStore] = None,
) -> KeyStore:
    """
    Install the configured master key.

    Args:
        env_file: Optional path to a .env file
        keys: Store to install into (process-wide store if omitted)

    Returns:
        The store holding the key
    """
    store = keys if keys is not None else default_store()
    store.setup(load_master_key(env_file))
    logger.debug("Master key loaded from %s", MASTER_KEY_ENV)
    return store
