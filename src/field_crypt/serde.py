"""
JSON document serialization for dataclasses with encrypted fields.

Fields declared with encrypted() are sealed into token strings; every
other field is written as ordinary JSON. Supported types are dataclasses,
str, int, float, bool, None, bytes (base64 text), Enum, list, tuple,
dict with str keys, and Optional/Union of those.

Example
-------
```python
from dataclasses import dataclass
from field_crypt import encrypted, dumps, loads, setup, generate_key

@dataclass
class Account:
    owner: str
    iban: str = encrypted()

setup(generate_key())
text = dumps(Account(owner="alice", iban="DE89 3704 0044 0532 0130 00"))
account = loads(text, Account)
```
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import functools
import json
import types
from enum import Enum
from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .cipher import FieldCipher
from .errors import SerializationError
from .fields import ByteCodec, FieldAdapter
from .keystore import KeyStore

T = TypeVar("T")

ENCRYPTED_METADATA_KEY = "field_crypt.encrypted"

_NONE_TYPE = type(None)
_UNION_TYPES = (Union, types.UnionType)


def encrypted(**kwargs: Any) -> Any:
    """
    Declare a dataclass field whose value is sealed when serialized.

    Accepts the same keyword arguments as dataclasses.field().
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[ENCRYPTED_METADATA_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def is_encrypted(f: dataclasses.Field) -> bool:
    return bool(f.metadata.get(ENCRYPTED_METADATA_KEY, False))


@functools.lru_cache(maxsize=None)
def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise SerializationError(f"Cannot resolve annotations of {cls.__name__}: {e}")


class TypedCodec(Generic[T]):
    """ByteCodec for one target type, backed by a DocumentCodec."""

    def __init__(self, owner: DocumentCodec, tp: Any) -> None:
        self._owner = owner
        self._tp = tp

    def encode(self, value: T) -> bytes:
        return self._owner.encode(value)

    def decode(self, data: bytes) -> T:
        return self._owner.decode(data, self._tp)


class DocumentCodec:
    """
    Converts dataclass instances to JSON-compatible documents and back.

    The same codec serializes the plaintext of encrypted fields, so nested
    encrypted fields are sealed with the same key store.
    """

    def __init__(self, keys: Optional[KeyStore] = None) -> None:
        """
        Args:
            keys: KeyStore holding the master key (process-wide store if omitted)
        """
        self._adapter = FieldAdapter(FieldCipher(keys))

    @property
    def adapter(self) -> FieldAdapter:
        return self._adapter

    def codec_for(self, tp: Type[T]) -> ByteCodec[T]:
        return TypedCodec(self, tp)

    # =========================================================================
    # Byte and text entry points
    # =========================================================================

    def encode(self, value: Any) -> bytes:
        """Serialize value to compact UTF-8 JSON bytes."""
        document = self.to_document(value)
        try:
            return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize document: {e}")

    def decode(self, data: bytes, tp: Type[T]) -> T:
        """Parse UTF-8 JSON bytes into an instance of tp."""
        try:
            document = json.loads(bytes(data).decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"Failed to parse document: {e}")
        return self.from_document(document, tp)

    def dumps(self, value: Any) -> str:
        return self.encode(value).decode("utf-8")

    def loads(self, text: str | bytes, tp: Type[T]) -> T:
        if isinstance(text, str):
            text = text.encode("utf-8")
        return self.decode(text, tp)

    def seal_field(self, value: Any) -> str:
        """Seal a single value into a token string."""
        return self._adapter.seal(value, self.codec_for(type(value)))

    def open_field(self, token: str, tp: Type[T]) -> T:
        """Open a token string into a value of type tp."""
        return self._adapter.open(token, self.codec_for(tp))

    # =========================================================================
    # Value -> document
    # =========================================================================

    def to_document(self, value: Any) -> Any:
        """
        Convert value into JSON-compatible data.

        Raises:
            SerializationError: If value (or anything inside it) is unsupported
        """
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, Enum):
            return self.to_document(value.value)
        if isinstance(value, (bytes, bytearray)):
            return base64.standard_b64encode(bytes(value)).decode("ascii")
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return self._dataclass_to_document(value)
        if isinstance(value, (list, tuple)):
            return [self.to_document(item) for item in value]
        if isinstance(value, (set, frozenset)):
            return [self.to_document(item) for item in sorted(value, key=repr)]
        if isinstance(value, dict):
            document = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise SerializationError(f"Dict keys must be str, got {type(key).__name__}")
                document[key] = self.to_document(item)
            return document
        raise SerializationError(f"Unsupported type: {type(value).__name__}")

    def _dataclass_to_document(self, value: Any) -> Dict[str, Any]:
        document = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if is_encrypted(f):
                document[f.name] = self._adapter.seal(item, self.codec_for(Any))
            else:
                document[f.name] = self.to_document(item)
        return document

    # =========================================================================
    # Document -> value
    # =========================================================================

    def from_document(self, data: Any, tp: Type[T]) -> T:
        """
        Rebuild a value of type tp from JSON-compatible data.

        Raises:
            SerializationError: If data does not match tp
            DecryptionFailed: If an encrypted field cannot be recovered
        """
        if tp is Any or tp is object:
            return data
        if tp is None or tp is _NONE_TYPE:
            if data is not None:
                raise SerializationError(f"Expected null, got {type(data).__name__}")
            return None

        origin = get_origin(tp)
        args = get_args(tp)

        if origin in _UNION_TYPES:
            return self._union_from_document(data, args)
        if dataclasses.is_dataclass(tp):
            return self._dataclass_from_document(data, tp)
        if isinstance(tp, type) and issubclass(tp, Enum):
            try:
                return tp(data)
            except ValueError:
                raise SerializationError(f"Value is not a valid {tp.__name__}")
        if tp is bool:
            return self._expect(data, bool, tp)
        if tp is int:
            if isinstance(data, bool):
                raise SerializationError("Expected int, got bool")
            return self._expect(data, int, tp)
        if tp is float:
            if isinstance(data, bool) or not isinstance(data, (int, float)):
                raise SerializationError(f"Expected float, got {type(data).__name__}")
            return float(data)
        if tp is str:
            return self._expect(data, str, tp)
        if tp in (bytes, bytearray):
            text = self._expect(data, str, tp)
            try:
                return tp(base64.b64decode(text.encode("ascii"), validate=True))
            except (UnicodeEncodeError, binascii.Error) as e:
                raise SerializationError(f"Invalid base64 for {tp.__name__}: {e}")

        container = origin if origin is not None else tp
        if container in (list, set, frozenset):
            items = self._expect(data, list, tp)
            item_tp = args[0] if args else Any
            return container(self.from_document(item, item_tp) for item in items)
        if container is tuple:
            return self._tuple_from_document(data, args)
        if container is dict:
            mapping = self._expect(data, dict, tp)
            if args and args[0] is not str:
                raise SerializationError("Only str dict keys are supported")
            value_tp = args[1] if args else Any
            return {key: self.from_document(item, value_tp) for key, item in mapping.items()}

        raise SerializationError(f"Unsupported type: {tp!r}")

    @staticmethod
    def _expect(data: Any, kind: type, tp: Any) -> Any:
        if not isinstance(data, kind):
            name = getattr(tp, "__name__", repr(tp))
            raise SerializationError(f"Expected {name}, got {type(data).__name__}")
        return data

    def _union_from_document(self, data: Any, args: tuple) -> Any:
        if data is None and _NONE_TYPE in args:
            return None
        candidates = [arg for arg in args if arg is not _NONE_TYPE]
        if len(candidates) == 1:
            return self.from_document(data, candidates[0])
        for candidate in candidates:
            try:
                return self.from_document(data, candidate)
            except SerializationError:
                continue
        raise SerializationError(f"{type(data).__name__} matches no member of Union{list(args)}")

    def _tuple_from_document(self, data: Any, args: tuple) -> tuple:
        items = self._expect(data, list, tuple)
        if not args:
            return tuple(items)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(self.from_document(item, args[0]) for item in items)
        if len(items) != len(args):
            raise SerializationError(f"Expected {len(args)} tuple items, got {len(items)}")
        return tuple(self.from_document(item, arg) for item, arg in zip(items, args))

    def _dataclass_from_document(self, data: Any, cls: Type[T]) -> T:
        if not isinstance(data, dict):
            raise SerializationError(f"Expected object for {cls.__name__}, got {type(data).__name__}")
        hints = _type_hints(cls)
        kwargs = {}
        for f in dataclasses.fields(cls):
            if not f.init:
                continue
            if f.name not in data:
                if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                    raise SerializationError(f"Missing field {cls.__name__}.{f.name}")
                continue
            field_tp = hints.get(f.name, Any)
            if is_encrypted(f):
                kwargs[f.name] = self.open_field(data[f.name], field_tp)
            else:
                kwargs[f.name] = self.from_document(data[f.name], field_tp)
        return cls(**kwargs)


# =============================================================================
# Process-wide helpers
# =============================================================================

_default_codec = DocumentCodec()


def _codec(keys: Optional[KeyStore]) -> DocumentCodec:
    return _default_codec if keys is None else DocumentCodec(keys)


def dumps(value: Any, *, keys: Optional[KeyStore] = None) -> str:
    """Serialize value to a JSON string, sealing encrypted fields."""
    return _codec(keys).dumps(value)


def loads(text: str | bytes, tp: Type[T], *, keys: Optional[KeyStore] = None) -> T:
    """Parse a JSON string into tp, opening encrypted fields."""
    return _codec(keys).loads(text, tp)


def to_document(value: Any, *, keys: Optional[KeyStore] = None) -> Any:
    return _codec(keys).to_document(value)


def from_document(data: Any, tp: Type[T], *, keys: Optional[KeyStore] = None) -> T:
    return _codec(keys).from_document(data, tp)


def serialize_encrypted(value: Any, *, keys: Optional[KeyStore] = None) -> str:
    """
    Seal one value into a token string.

    Args:
        value: Any value the document codec supports
        keys: KeyStore to use (process-wide store if omitted)

    Returns:
        base64(nonce || ciphertext || tag)
    """
    return _codec(keys).seal_field(value)


def deserialize_encrypted(token: str, tp: Type[T], *, keys: Optional[KeyStore] = None) -> T:
    """
    Open a token string into a value of type tp.

    Raises:
        DecryptionFailed: If the token cannot be recovered as tp
    """
    return _codec(keys).open_field(token, tp)
