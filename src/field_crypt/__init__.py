"""
Field Encryption Library

Transparent AES-256-GCM encryption of individual dataclass fields inside
otherwise plaintext JSON documents.

Quick Start
-----------
```python
from dataclasses import dataclass
from field_crypt import KEY_LEN, dumps, encrypted, generate_key, loads, setup

@dataclass
class Profile:
    name: str
    ssn: str = encrypted()

setup(generate_key())

text = dumps(Profile(name="alice", ssn="078-05-1120"))
# {"name":"alice","ssn":"<base64 nonce || ciphertext || tag>"}
profile = loads(text, Profile)
```

Key Features
------------
- **AES-256-GCM**: Authenticated encryption, fresh 96-bit nonce per field
- **Recursive**: Encrypted fields may hold dataclasses with their own encrypted fields
- **Write-once key store**: setup() installs one key; re-installation is rejected
- **Uniform failures**: Tampered, foreign-key or mistyped tokens raise DecryptionFailed
- **Memory Security**: Best-effort key zeroization on deletion

Modules
-------
- `crypto`: AES-256-GCM primitives and the MasterKey wrapper
- `keystore`: Write-once, thread-safe key store
- `cipher`: AEAD engine bound to a key store
- `tokens`: base64(nonce || ciphertext || tag) wire format
- `fields`: Field adapter (seal/open) and the ByteCodec protocol
- `serde`: JSON document codec for dataclasses
- `config`: Key loading from environment / .env
- `errors`: Error types and exception classes
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# ============================================================================
# Crypto Exports
# ============================================================================

from .crypto import (
    KEY_LEN,
    NONCE_SIZE,
    TAG_SIZE,
    AesGcmCipher,
    MasterKey,
    generate_key,
)
from .cipher import FieldCipher

# ============================================================================
# Key Store Exports
# ============================================================================

from .keystore import (
    KeyStore,
    current_key,
    default_store,
    setup,
)

# ============================================================================
# Error Exports
# ============================================================================

from .errors import (
    AuthenticationError,
    ConfigError,
    CryptoError,
    DecryptionFailed,
    FieldCryptError,
    InnerDecodeError,
    KeyAlreadyInitializedError,
    KeyLengthError,
    KeyNotInitializedError,
    KeyStateError,
    SerializationError,
    TokenFormatError,
)

# ============================================================================
# Token / Field Exports
# ============================================================================

from .tokens import (
    EncryptedToken,
    decode_token,
    encode_token,
)

from .fields import (
    ByteCodec,
    FieldAdapter,
)

# ============================================================================
# Document Exports
# ============================================================================

from .serde import (
    DocumentCodec,
    deserialize_encrypted,
    dumps,
    encrypted,
    from_document,
    is_encrypted,
    loads,
    serialize_encrypted,
    to_document,
)

# ============================================================================
# Config Exports
# ============================================================================

from .config import (
    MASTER_KEY_ENV,
    load_master_key,
    setup_from_env,
)

# ============================================================================
# Public API
# ============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "KEY_LEN",
    "NONCE_SIZE",
    "TAG_SIZE",
    "AesGcmCipher",
    "MasterKey",
    "FieldCipher",
    "generate_key",
    # Key store
    "KeyStore",
    "default_store",
    "setup",
    "current_key",
    # Errors
    "FieldCryptError",
    "KeyStateError",
    "KeyNotInitializedError",
    "KeyAlreadyInitializedError",
    "KeyLengthError",
    "CryptoError",
    "TokenFormatError",
    "AuthenticationError",
    "InnerDecodeError",
    "DecryptionFailed",
    "SerializationError",
    "ConfigError",
    # Tokens and fields
    "EncryptedToken",
    "encode_token",
    "decode_token",
    "ByteCodec",
    "FieldAdapter",
    # Documents
    "DocumentCodec",
    "encrypted",
    "is_encrypted",
    "dumps",
    "loads",
    "to_document",
    "from_document",
    "serialize_encrypted",
    "deserialize_encrypted",
    # Config
    "MASTER_KEY_ENV",
    "load_master_key",
    "setup_from_env",
]
