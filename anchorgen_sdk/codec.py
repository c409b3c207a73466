"""
Borsh codec.

Maps IDL type references onto ``construct`` layouts that follow the Borsh
wire format (little-endian integers, ``u32`` length prefixes, a one-byte
option tag) and wraps the construct build/parse calls so that failures
surface as ``EncodeError`` and ``DecodeError``.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from construct import (
    Adapter,
    Array,
    Bytes as FixedBytes,
    BytesInteger,
    Construct,
    ConstructError,
    Container,
    Flag,
    Float32l,
    Float64l,
    GreedyBytes,
    Int8sl,
    Int8ul,
    Int16sl,
    Int16ul,
    Int32sl,
    Int32ul,
    Int64sl,
    Int64ul,
    ListContainer,
    PascalString,
    Prefixed,
    PrefixedArray,
    SizeofError,
    Struct,
    Subconstruct,
)

from .exceptions import DecodeError, EncodeError, SchemaError
from .discriminator import short_type_name
from .keys import PUBKEY_LENGTH, Pubkey
from .models import FieldDef, ProgramSchema

logger = logging.getLogger(__name__)

Bool = Flag
U8 = Int8ul
U16 = Int16ul
U32 = Int32ul
U64 = Int64ul
U128 = BytesInteger(16, signed=False, swapped=True)
I8 = Int8sl
I16 = Int16sl
I32 = Int32sl
I64 = Int64sl
I128 = BytesInteger(16, signed=True, swapped=True)
F32 = Float32l
F64 = Float64l
String = PascalString(U32, "utf8")
BorshBytes = Prefixed(U32, GreedyBytes)


class _PubkeyAdapter(Adapter):
    """32 raw bytes on the wire, ``Pubkey`` in Python"""

    def __init__(self):
        super().__init__(FixedBytes(PUBKEY_LENGTH))

    def _decode(self, obj: bytes, context: Any, path: Any) -> Pubkey:
        return Pubkey.from_bytes(obj)

    def _encode(self, obj: Any, context: Any, path: Any) -> bytes:
        return bytes(Pubkey.coerce(obj))


BorshPubkey = _PubkeyAdapter()


class _Option(Subconstruct):
    """A ``u8`` presence tag (0 or 1) followed by the value when present"""

    def _parse(self, stream, context, path):
        present = U8._parsereport(stream, context, path)
        if present == 0:
            return None
        if present != 1:
            raise ConstructError(f"Invalid option tag {present}", path=path)
        return self.subcon._parsereport(stream, context, path)

    def _build(self, obj, stream, context, path):
        if obj is None:
            U8._build(0, stream, context, path)
            return None
        U8._build(1, stream, context, path)
        return self.subcon._build(obj, stream, context, path)

    def _sizeof(self, context, path):
        raise SizeofError("Option has no fixed size", path=path)


def Vec(subcon: Construct) -> Construct:
    """A ``u32`` element count followed by the elements."""
    return PrefixedArray(U32, subcon)


def Option(subcon: Construct) -> Construct:
    return _Option(subcon)


def CStruct(*fields: Construct) -> Construct:
    """Named fields laid out back to back in declared order."""
    return Struct(*fields)


PRIMITIVE_LAYOUTS: Dict[str, Construct] = {
    "bool": Bool,
    "u8": U8,
    "u16": U16,
    "u32": U32,
    "u64": U64,
    "u128": U128,
    "i8": I8,
    "i16": I16,
    "i32": I32,
    "i64": I64,
    "i128": I128,
    "f32": F32,
    "f64": F64,
    "string": String,
    "bytes": BorshBytes,
    "pubkey": BorshPubkey,
}


def to_plain(value: Any) -> Any:
    """Strip construct's ``_io`` bookkeeping and return plain dict/list trees."""
    if isinstance(value, Container):
        return {key: to_plain(item) for key, item in value.items() if key != "_io"}
    if isinstance(value, (ListContainer, list)):
        return [to_plain(item) for item in value]
    return value


def encode(layout: Construct, value: Any) -> bytes:
    """
    Serialize a value with a Borsh layout.

    Raises:
        EncodeError: If the value does not fit the layout
    """
    try:
        return layout.build(value)
    except (ConstructError, KeyError, OverflowError, TypeError, ValueError) as e:
        raise EncodeError(f"Failed to encode value: {e}") from e


def decode(layout: Construct, data: bytes) -> Any:
    """
    Deserialize bytes with a Borsh layout.

    Bytes beyond the layout's extent are ignored.

    Raises:
        DecodeError: If the bytes are malformed for the layout
    """
    try:
        return to_plain(layout.parse(bytes(data)))
    except (ConstructError, ValueError) as e:
        raise DecodeError(f"Failed to decode data: {e}") from e


class BorshCodec:
    """
    Borsh layouts for the types of one program schema.

    Layouts for defined types are built once and cached by simple name.
    """

    def __init__(self, schema: Optional[ProgramSchema] = None):
        self.schema = schema
        self._defined: Dict[str, Construct] = {}
        self._resolving: List[str] = []

    def layout_for(self, type_ref: Any) -> Construct:
        """
        Build the Borsh layout for an IDL type reference.

        Raises:
            SchemaError: If a defined type is unknown or recursive
        """
        if isinstance(type_ref, str):
            try:
                return PRIMITIVE_LAYOUTS[type_ref]
            except KeyError:
                raise SchemaError(f"Unknown primitive type: {type_ref!r}")

        kind, inner = next(iter(type_ref.items()))
        if kind == "vec":
            return Vec(self.layout_for(inner))
        if kind == "option":
            return Option(self.layout_for(inner))
        if kind == "array":
            element, length = inner
            return Array(length, self.layout_for(element))
        if kind == "defined":
            return self._defined_layout(inner)
        raise SchemaError(f"Unknown type kind: {kind!r}")

    def struct_layout(self, fields: Sequence[FieldDef]) -> Construct:
        return CStruct(*(field.name / self.layout_for(field.type) for field in fields))

    def _defined_layout(self, name: str) -> Construct:
        simple = short_type_name(name)
        if simple in self._defined:
            return self._defined[simple]
        if self.schema is None:
            raise SchemaError(f"Cannot resolve defined type '{name}' without a program schema")
        if simple in self._resolving:
            cycle = " -> ".join(self._resolving + [simple])
            raise SchemaError(f"Recursive type definition: {cycle}")
        try:
            typedef = self.schema.get_type(simple)
        except KeyError:
            raise SchemaError(f"Unknown defined type: {name}")

        self._resolving.append(simple)
        try:
            layout = self.struct_layout(typedef.fields)
        finally:
            self._resolving.pop()
        self._defined[simple] = layout
        return layout

    def serialize(self, layout: Construct, value: Any) -> bytes:
        return encode(layout, value)

    def serialized_size(self, layout: Construct, value: Any) -> int:
        """Size in bytes of the value's encoding; raises EncodeError like serialize."""
        return len(encode(layout, value))

    def serialize_into(self, layout: Construct, value: Any, buffer: Any) -> int:
        """Encode a value and write it to a buffer, returning the bytes written."""
        encoded = encode(layout, value)
        buffer.write(encoded)
        return len(encoded)

    def deserialize(self, layout: Construct, data: bytes) -> Any:
        return decode(layout, data)
