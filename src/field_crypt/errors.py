"""
Exception classes for field encryption operations.

Read-path failures are kept as distinct kinds internally (token format,
authentication, inner decode) but surface to callers of document
deserialization as a single DecryptionFailed.
"""

from __future__ import annotations


class FieldCryptError(Exception):
    """Base exception for all field encryption operations."""

    pass


class KeyStateError(FieldCryptError):
    """The key store is in the wrong state for the requested operation."""

    pass


class KeyNotInitializedError(KeyStateError):
    """A key was needed before setup() installed one."""

    pass


class KeyAlreadyInitializedError(KeyStateError):
    """setup() was called on a store that already holds a key."""

    pass


class KeyLengthError(FieldCryptError):
    """Supplied master key does not have the required length."""

    pass


class CryptoError(FieldCryptError):
    """Cryptographic operation failed."""

    pass


class TokenFormatError(CryptoError):
    """Token is not valid base64 or is too short to hold nonce and tag."""

    pass


class AuthenticationError(CryptoError):
    """Authentication tag did not verify (tampered data or wrong key)."""

    pass


class InnerDecodeError(CryptoError):
    """Decrypted bytes do not parse as the expected type."""

    pass


class DecryptionFailed(FieldCryptError):
    """An encrypted field could not be recovered."""

    pass


class SerializationError(FieldCryptError):
    """Serialization or deserialization error."""

    pass


class ConfigError(FieldCryptError):
    """Configuration error."""

    pass
