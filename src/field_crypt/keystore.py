"""
Write-once holder for the master key.

A KeyStore starts empty and accepts exactly one key. Re-installing a key
is rejected: tokens sealed under the first key would silently become
undecryptable. Every cipher, adapter and document codec accepts an
explicit KeyStore; the module-level helpers operate on a process-wide
default instance.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .crypto import MasterKey
from .errors import KeyAlreadyInitializedError, KeyNotInitializedError

logger = logging.getLogger(__name__)


class KeyStore:
    """
    Thread-safe, write-once master key store.

    Installation and reads are serialized on a lock, so concurrent
    encrypt/decrypt calls never observe a half-installed key.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._key: Optional[MasterKey] = None

    @classmethod
    def with_key(cls, key: bytes | bytearray) -> KeyStore:
        """Create a store with key already installed."""
        store = cls()
        store.setup(key)
        return store

    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return self._key is not None

    def setup(self, key: bytes | bytearray) -> None:
        """
        Install the master key.

        Args:
            key: Raw key material, exactly KEY_LEN bytes

        Raises:
            KeyLengthError: If the key has the wrong size
            KeyAlreadyInitializedError: If a key is already installed
        """
        master = MasterKey(key)
        with self._lock:
            if self._key is not None:
                logger.warning("Rejected master key re-installation")
                raise KeyAlreadyInitializedError("Master key is already installed")
            self._key = master
        logger.debug("Master key installed (%d bytes)", len(master))

    def current_key(self) -> MasterKey:
        """
        Return the installed master key.

        Raises:
            KeyNotInitializedError: If setup() has not been called
        """
        with self._lock:
            key = self._key
        if key is None:
            raise KeyNotInitializedError("setup() must be called before encrypting fields")
        return key

    def __repr__(self) -> str:
        state = "initialized" if self.is_initialized else "uninitialized"
        return f"KeyStore({state})"


_default_store = KeyStore()


def default_store() -> KeyStore:
    """Return the process-wide key store."""
    return _default_store


def setup(key: bytes | bytearray) -> None:
    """Install the master key into the process-wide store."""
    default_store().setup(key)


def current_key() -> MasterKey:
    """Return the master key from the process-wide store."""
    return default_store().current_key()
