"""
Wire format of an encrypted field.

A token is base64 (standard alphabet, padded) of nonce || ciphertext || tag.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Tuple

from .crypto import NONCE_SIZE, TAG_SIZE
from .errors import TokenFormatError

MIN_BLOB_SIZE: int = NONCE_SIZE + TAG_SIZE


@dataclass(frozen=True)
class EncryptedToken:
    """
    Nonce and sealed payload of one encrypted field.

    sealed includes the 16-byte authentication tag appended by AESGCM.
    """

    nonce: bytes  # 12 bytes
    sealed: bytes  # Ciphertext + 16-byte auth tag

    def to_blob(self) -> bytes:
        """Concatenate as nonce || ciphertext || tag."""
        return self.nonce + self.sealed

    @classmethod
    def from_blob(cls, blob: bytes) -> EncryptedToken:
        """
        Split a raw blob at the nonce boundary.

        Raises:
            TokenFormatError: If blob is too small to hold nonce and tag
        """
        if len(blob) < MIN_BLOB_SIZE:
            raise TokenFormatError(
                f"Token too small: expected at least {MIN_BLOB_SIZE} bytes, got {len(blob)}"
            )
        return cls(nonce=blob[:NONCE_SIZE], sealed=blob[NONCE_SIZE:])

    def encode(self) -> str:
        """Encode as base64 string."""
        return base64.standard_b64encode(self.to_blob()).decode("ascii")

    @classmethod
    def decode(cls, token: str) -> EncryptedToken:
        """
        Decode from a base64 token string.

        Args:
            token: Base64-encoded nonce || ciphertext || tag

        Returns:
            EncryptedToken instance

        Raises:
            TokenFormatError: If token is not a string, not canonical base64, or too short
        """
        if not isinstance(token, str):
            raise TokenFormatError(f"Token must be a string, got {type(token).__name__}")
        try:
            decoded = base64.b64decode(token.encode("ascii"), validate=True)
        except (UnicodeEncodeError, binascii.Error) as e:
            raise TokenFormatError(f"Base64 decode error: {e}")
        if base64.standard_b64encode(decoded).decode("ascii") != token:
            raise TokenFormatError("Token is not canonical base64")
        return cls.from_blob(decoded)


def encode_token(nonce: bytes, sealed: bytes) -> str:
    """Text-encode a nonce and sealed payload."""
    return EncryptedToken(nonce=nonce, sealed=sealed).encode()


def decode_token(token: str) -> Tuple[bytes, bytes]:
    """Split a token string into (nonce, sealed)."""
    parsed = EncryptedToken.decode(token)
    return parsed.nonce, parsed.sealed
