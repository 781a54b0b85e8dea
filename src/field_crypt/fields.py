"""
Field adapter: turns a typed value into a token string and back.

Write path: value -> ByteCodec.encode -> FieldCipher.encrypt -> token.
Read path:  token -> decode_token -> FieldCipher.decrypt -> ByteCodec.decode.

The ByteCodec used for the payload is normally the same document codec
that is walking the outer structure, so encrypted fields nested inside an
encrypted value are sealed recursively.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, TypeVar

from .cipher import FieldCipher
from .errors import (
    AuthenticationError,
    DecryptionFailed,
    InnerDecodeError,
    SerializationError,
    TokenFormatError,
)
from .tokens import decode_token, encode_token

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REJECTED = (TokenFormatError, AuthenticationError, InnerDecodeError, DecryptionFailed)


class ByteCodec(Protocol[T]):
    """Capability required of an encrypted field's type."""

    def encode(self, value: T) -> bytes:
        ...

    def decode(self, data: bytes) -> T:
        ...


class FieldAdapter:
    """
    Seals values into tokens and opens tokens back into values.

    All read-path failures are reported as DecryptionFailed without the
    underlying cause attached. The internal kind is only logged at DEBUG.
    KeyNotInitializedError is a programming error and propagates as is.
    """

    def __init__(self, cipher: Optional[FieldCipher] = None) -> None:
        self._cipher = cipher if cipher is not None else FieldCipher()

    @property
    def cipher(self) -> FieldCipher:
        return self._cipher

    def seal(self, value: T, codec: ByteCodec[T]) -> str:
        """
        Encrypt a value into a token string.

        Args:
            value: Value to protect
            codec: Byte codec for the value's type

        Returns:
            base64(nonce || ciphertext || tag)

        Raises:
            SerializationError: If the value cannot be encoded
            KeyNotInitializedError: If no key is installed
        """
        plaintext = codec.encode(value)
        nonce, sealed = self._cipher.encrypt(plaintext)
        return encode_token(nonce, sealed)

    def open(self, token: str, codec: ByteCodec[T]) -> T:
        """
        Recover a value from a token string.

        Args:
            token: Token produced by seal()
            codec: Byte codec for the expected type

        Returns:
            The original value

        Raises:
            DecryptionFailed: If the token is malformed, forged, sealed under
                another key, or does not decode as the expected type
            KeyNotInitializedError: If no key is installed
        """
        try:
            return self._open(token, codec)
        except _REJECTED as e:
            logger.debug("Encrypted field rejected: %s", type(e).__name__)
            raise DecryptionFailed("Decryption failed") from None

    def _open(self, token: str, codec: ByteCodec[T]) -> T:
        nonce, sealed = decode_token(token)
        plaintext = self._cipher.decrypt(nonce, sealed)
        try:
            return codec.decode(plaintext)
        except (SerializationError, ValueError, TypeError) as e:
            raise InnerDecodeError(f"Payload does not decode as the expected type ({type(e).__name__})") from e
