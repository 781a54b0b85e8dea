"""
AEAD engine bound to a key store.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .crypto import AesGcmCipher
from .keystore import KeyStore, default_store


class FieldCipher:
    """
    Seals and opens field payloads under the key installed in a KeyStore.

    The key is looked up on every call, so a cipher may be created before
    setup() and used afterwards.
    """

    def __init__(self, keys: Optional[KeyStore] = None) -> None:
        """
        Args:
            keys: KeyStore to read the master key from (process-wide store if omitted)
        """
        self._keys = keys

    @property
    def keys(self) -> KeyStore:
        return self._keys if self._keys is not None else default_store()

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        """
        Encrypt plaintext with a fresh nonce.

        Returns:
            (nonce, sealed); len(sealed) == len(plaintext) + TAG_SIZE

        Raises:
            KeyNotInitializedError: If no key is installed
        """
        return AesGcmCipher.encrypt(self.keys.current_key(), plaintext)

    def decrypt(self, nonce: bytes, sealed: bytes) -> bytes:
        """
        Verify and decrypt.

        Raises:
            KeyNotInitializedError: If no key is installed
            AuthenticationError: If the tag does not verify
        """
        return AesGcmCipher.decrypt(self.keys.current_key(), nonce, sealed)
