"""
Cryptographic primitives for AES-256-GCM field encryption.

This module provides:
- MasterKey: Secure master key wrapper with automatic zeroization
- AesGcmCipher: AES-256-GCM seal/open under a MasterKey
- generate_key: Random key of the required length

The master key is never handed to AES directly. The cipher key is
SHA-256(master key), derived once when the MasterKey is created.
"""

from __future__ import annotations

import secrets
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import AuthenticationError, CryptoError, KeyLengthError

# Cryptographic constants
KEY_LEN: int = 32  # 256 bits
NONCE_SIZE: int = 12  # 96 bits (standard for AES-GCM)
TAG_SIZE: int = 16  # 128 bits (authentication tag)


def _derive_cipher_key(key_bytes: bytes | bytearray) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(bytes(key_bytes))
    return digest.finalize()


class MasterKey:
    """
    Master key wrapper with memory cleanup on deletion.

    Uses bytearray internally for mutable zeroing in __del__.
    Note: Python's garbage collector doesn't guarantee immediate cleanup,
    so this is best-effort zeroization.
    """

    __slots__ = ("_bytes", "_cipher_key")

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        """
        Create a MasterKey from raw bytes.

        Args:
            key_bytes: Raw key material, exactly KEY_LEN bytes

        Raises:
            KeyLengthError: If key_bytes is not bytes or has the wrong size
        """
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise KeyLengthError("Key must be bytes or bytearray")
        if len(key_bytes) != KEY_LEN:
            raise KeyLengthError(
                f"Invalid key size: expected {KEY_LEN}, got {len(key_bytes)}"
            )
        self._bytes = bytearray(key_bytes)
        self._cipher_key = bytearray(_derive_cipher_key(self._bytes))

    @classmethod
    def generate(cls) -> MasterKey:
        """Generate a cryptographically secure random master key."""
        return cls(generate_key())

    def cipher_key(self) -> bytes:
        """Return the derived AES-256 key as immutable bytes."""
        return bytes(self._cipher_key)

    def __len__(self) -> int:
        return len(self._bytes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MasterKey):
            return NotImplemented
        return secrets.compare_digest(bytes(self._bytes), bytes(other._bytes))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental key disclosure."""
        return "MasterKey([REDACTED])"

    def __del__(self) -> None:
        """Zero memory on deletion (best-effort)."""
        for name in self.__slots__:
            buf = getattr(self, name, None)
            if buf is not None:
                for i in range(len(buf)):
                    buf[i] = 0


class AesGcmCipher:
    """
    AES-256-GCM authenticated encryption.

    Sealed output is ciphertext with the 16-byte tag appended, as produced
    by AESGCM. No associated data is bound.
    """

    @staticmethod
    def encrypt(
        key: MasterKey,
        plaintext: bytes,
    ) -> Tuple[bytes, bytes]:
        """
        Encrypt plaintext under a fresh random nonce.

        Args:
            key: Installed master key
            plaintext: Data to encrypt

        Returns:
            (nonce, sealed) where sealed is ciphertext || tag

        Raises:
            CryptoError: If encryption fails
        """
        nonce = secrets.token_bytes(NONCE_SIZE)
        aesgcm = AESGCM(key.cipher_key())

        try:
            sealed = aesgcm.encrypt(nonce, bytes(plaintext), None)
        except (TypeError, ValueError, OverflowError) as e:
            raise CryptoError(f"Encryption error: {e}")

        return nonce, sealed

    @staticmethod
    def decrypt(
        key: MasterKey,
        nonce: bytes,
        sealed: bytes,
    ) -> bytes:
        """
        Verify and decrypt a sealed buffer.

        Args:
            key: Installed master key
            nonce: NONCE_SIZE bytes used at encryption
            sealed: ciphertext || tag

        Returns:
            Decrypted plaintext bytes

        Raises:
            AuthenticationError: If the nonce is malformed or the tag does not verify
        """
        if len(nonce) != NONCE_SIZE or len(sealed) < TAG_SIZE:
            raise AuthenticationError("Decryption failed")

        aesgcm = AESGCM(key.cipher_key())

        try:
            return aesgcm.decrypt(bytes(nonce), bytes(sealed), None)
        except InvalidTag:
            # Generic error to prevent oracle attacks
            raise AuthenticationError("Decryption failed") from None


def generate_key() -> bytes:
    """
    Generate a random master key of KEY_LEN bytes.

    Returns:
        Random bytes suitable for setup()
    """
    return secrets.token_bytes(KEY_LEN)
