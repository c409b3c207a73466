"""
Data models for the anchorgen SDK.

A ``ProgramSchema`` is the in-memory description of a program: its ordered
instructions (each with ordered account roles and optional arguments), the
account record types those roles reference, the events it emits and the
struct types shared between them.
"""
import base64
import json
import pathlib
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .discriminator import (
    DISCRIMINATOR_LENGTH,
    account_discriminator,
    event_discriminator,
    short_type_name,
)
from .exceptions import SchemaError
from .keys import Pubkey

TypeRef = Union[str, Dict[str, Any]]

PRIMITIVE_TYPES = frozenset({
    "bool",
    "u8", "u16", "u32", "u64", "u128",
    "i8", "i16", "i32", "i64", "i128",
    "f32", "f64",
    "string", "bytes", "pubkey",
})

_PRIMITIVE_ALIASES = {"publicKey": "pubkey"}


def normalize_type_ref(type_ref: Any) -> TypeRef:
    """
    Validate an IDL type reference and bring it into canonical form.

    Raises:
        ValueError: If the reference is not a known primitive or composite
    """
    if isinstance(type_ref, str):
        name = _PRIMITIVE_ALIASES.get(type_ref, type_ref)
        if name not in PRIMITIVE_TYPES:
            raise ValueError(f"Unknown primitive type: {type_ref!r}")
        return name

    if not isinstance(type_ref, dict) or len(type_ref) != 1:
        raise ValueError(f"Type reference must be a string or a single-key object, got: {type_ref!r}")

    kind, inner = next(iter(type_ref.items()))
    if kind in ("vec", "option"):
        return {kind: normalize_type_ref(inner)}
    if kind == "array":
        if not isinstance(inner, (list, tuple)) or len(inner) != 2:
            raise ValueError(f"Array type must be [type, length], got: {inner!r}")
        element, length = inner
        if not isinstance(length, int) or isinstance(length, bool) or length < 0:
            raise ValueError(f"Array length must be a non-negative integer, got: {length!r}")
        return {"array": [normalize_type_ref(element), length]}
    if kind == "defined":
        if isinstance(inner, dict):
            inner = inner.get("name")
        if not isinstance(inner, str) or not inner:
            raise ValueError(f"Defined type must name a type, got: {type_ref!r}")
        return {"defined": inner}
    raise ValueError(f"Unknown type kind: {kind!r}")


def iter_defined_names(type_ref: TypeRef) -> Iterator[str]:
    """Yield every user-defined type name referenced by a type reference."""
    if isinstance(type_ref, str):
        return
    kind, inner = next(iter(type_ref.items()))
    if kind == "defined":
        yield inner
    elif kind == "array":
        yield from iter_defined_names(inner[0])
    else:
        yield from iter_defined_names(inner)


def _coerce_discriminator(value: Any) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, str):
        value = bytes.fromhex(value)
    elif isinstance(value, (list, tuple)):
        value = bytes(value)
    if not isinstance(value, (bytes, bytearray)) or len(value) != DISCRIMINATOR_LENGTH:
        raise ValueError(f"Discriminator must be exactly {DISCRIMINATOR_LENGTH} bytes")
    return bytes(value)


class FieldDef(BaseModel):
    """A named, typed field of an argument bundle, record, event or struct"""
    name: str
    type: TypeRef

    @field_validator("type", mode="before")
    @classmethod
    def _validate_type(cls, value: Any) -> TypeRef:
        return normalize_type_ref(value)


class TypeDef(BaseModel):
    """A struct type shared by arguments, records and events"""
    name: str
    fields: List[FieldDef] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_anchor_type(cls, data: Any) -> Any:
        # Anchor IDLs nest struct fields under {"type": {"kind": "struct", "fields": [...]}}
        if isinstance(data, dict) and isinstance(data.get("type"), dict):
            body = data["type"]
            if body.get("kind", "struct") != "struct":
                raise SchemaError(f"Type '{data.get('name')}' has unsupported kind '{body.get('kind')}'")
            data = {key: value for key, value in data.items() if key != "type"}
            data["fields"] = body.get("fields", [])
        return data


class RecordType(TypeDef):
    """
    A distinct account record shape.

    The tag is fixed when the model is built: an explicit ``discriminator``
    wins, otherwise it is derived from the simple name in the "account"
    namespace.
    """
    discriminator: Optional[bytes] = None

    @field_validator("discriminator", mode="before")
    @classmethod
    def _validate_discriminator(cls, value: Any) -> Optional[bytes]:
        return _coerce_discriminator(value)

    @property
    def simple_name(self) -> str:
        return short_type_name(self.name)

    @property
    def tag(self) -> bytes:
        return self.discriminator or account_discriminator(self.simple_name)


class EventDef(TypeDef):
    """A notification record an instruction may publish through the program log"""
    discriminator: Optional[bytes] = None

    @field_validator("discriminator", mode="before")
    @classmethod
    def _validate_discriminator(cls, value: Any) -> Optional[bytes]:
        return _coerce_discriminator(value)

    @property
    def simple_name(self) -> str:
        return short_type_name(self.name)

    @property
    def tag(self) -> bytes:
        return self.discriminator or event_discriminator(self.simple_name)


class RoleConstraint(BaseModel):
    """
    A positional account parameter of an instruction.

    ``record_type`` is either None (a plain address) or the record shape the
    account holds; it is resolved once from ``account`` when the owning
    schema is validated.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    is_signer: bool = Field(False, validation_alias=AliasChoices("is_signer", "signer", "isSigner"))
    is_mut: bool = Field(False, validation_alias=AliasChoices("is_mut", "writable", "isMut"))
    account: Optional[str] = None
    record_type: Optional[RecordType] = None


class InstructionDef(BaseModel):
    """A callable entry point of the program"""
    name: str
    accounts: List[RoleConstraint]
    args: Optional[List[FieldDef]] = None

    @property
    def is_void(self) -> bool:
        return not self.args


class ErrorDef(BaseModel):
    """A custom program error code"""
    code: int
    name: str
    msg: Optional[str] = None


class ConstantDef(BaseModel):
    """A named program constant, kept as its textual value"""
    name: str
    type: TypeRef
    value: str

    @field_validator("type", mode="before")
    @classmethod
    def _validate_type(cls, value: Any) -> TypeRef:
        return normalize_type_ref(value)


class AccountRecord(BaseModel):
    """Raw account as fetched from a cluster"""
    model_config = ConfigDict(populate_by_name=True)

    data: bytes
    owner: str
    lamports: int = 0
    executable: bool = False
    rent_epoch: int = Field(0, alias="rentEpoch")

    @classmethod
    def from_rpc(cls, value: Dict[str, Any]) -> "AccountRecord":
        """
        Convert a ``getAccountInfo`` result value (base64 encoding) to a record.

        Raises:
            ValueError: If the data is not base64 encoded
        """
        raw = value.get("data")
        if isinstance(raw, list):
            if len(raw) != 2 or raw[1] != "base64":
                raise ValueError(f"Unsupported account data encoding: {raw[1:]!r}")
            raw = raw[0]
        data = base64.b64decode(raw or "")
        return cls(
            data=data,
            owner=value.get("owner", ""),
            lamports=value.get("lamports", 0),
            executable=value.get("executable", False),
            rent_epoch=value.get("rentEpoch", 0) or 0,
        )


class ProgramSchema(BaseModel):
    """
    Declarative description of a program.

    Instruction, role and field order is preserved exactly as declared; it
    is part of the wire contract with the executing program.
    """
    name: str
    address: str
    version: str = "0.1.0"
    instructions: List[InstructionDef] = Field(default_factory=list)
    accounts: List[RecordType] = Field(default_factory=list)
    events: List[EventDef] = Field(default_factory=list)
    types: List[TypeDef] = Field(default_factory=list)
    errors: List[ErrorDef] = Field(default_factory=list)
    constants: List[ConstantDef] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _from_anchor_layout(cls, data: Any) -> Any:
        # Anchor IDLs keep the program name under "metadata" and list accounts
        # and events by name and discriminator only, with bodies in "types"
        if not isinstance(data, dict):
            return data
        metadata = data.get("metadata")
        if "name" not in data and isinstance(metadata, dict) and "name" in metadata:
            data = {**data, "name": metadata["name"]}
            if "version" in metadata:
                data.setdefault("version", metadata["version"])
        if not isinstance(data.get("types"), list):
            return data
        bodies = {
            t["name"]: t["type"]
            for t in data["types"]
            if isinstance(t, dict) and "name" in t and "type" in t
        }
        data = dict(data)
        for key in ("accounts", "events"):
            items = []
            for item in data.get(key) or []:
                if isinstance(item, dict) and "fields" not in item and "type" not in item and item.get("name") in bodies:
                    item = {**item, "type": bodies[item["name"]]}
                items.append(item)
            if key in data:
                data[key] = items
        return data

    @field_validator("address")
    @classmethod
    def _validate_address(cls, value: str) -> str:
        Pubkey.from_string(value)
        return value

    @model_validator(mode="after")
    def _resolve_references(self) -> "ProgramSchema":
        records: Dict[str, RecordType] = {}
        for record in self.accounts:
            records.setdefault(record.simple_name, record)

        for instruction in self.instructions:
            for role in instruction.accounts:
                if role.record_type is not None:
                    if role.account is None:
                        role.account = role.record_type.name
                    records.setdefault(role.record_type.simple_name, role.record_type)
                    continue
                if role.account is None:
                    continue
                record = records.get(short_type_name(role.account))
                if record is None:
                    raise SchemaError(
                        f"Instruction '{instruction.name}' account '{role.name}' references "
                        f"undeclared account type '{role.account}'"
                    )
                role.record_type = record

        known = set(records)
        known.update(short_type_name(t.name) for t in self.types)
        known.update(e.simple_name for e in self.events)
        for owner, field in self._iter_fields():
            for defined in iter_defined_names(field.type):
                if short_type_name(defined) not in known:
                    raise SchemaError(f"{owner} field '{field.name}' references unknown type '{defined}'")
        return self

    def _iter_fields(self) -> Iterator[tuple]:
        for instruction in self.instructions:
            for field in instruction.args or []:
                yield f"Instruction '{instruction.name}'", field
        for group, label in ((self.accounts, "Account"), (self.events, "Event"), (self.types, "Type")):
            for item in group:
                for field in item.fields:
                    yield f"{label} '{item.name}'", field

    @property
    def program_id(self) -> Pubkey:
        return Pubkey.from_string(self.address)

    def get_instruction(self, name: str) -> InstructionDef:
        for instruction in self.instructions:
            if instruction.name == name:
                return instruction
        raise KeyError(f"Unknown instruction: {name}")

    def get_account(self, name: str) -> RecordType:
        simple = short_type_name(name)
        for record in self.accounts:
            if record.simple_name == simple:
                return record
        for instruction in self.instructions:
            for role in instruction.accounts:
                if role.record_type is not None and role.record_type.simple_name == simple:
                    return role.record_type
        raise KeyError(f"Unknown account type: {name}")

    def get_event(self, name: str) -> EventDef:
        simple = short_type_name(name)
        for event in self.events:
            if event.simple_name == simple:
                return event
        raise KeyError(f"Unknown event: {name}")

    def get_type(self, name: str) -> TypeDef:
        """
        Look up a struct by name among types, account records and events.

        Raises:
            KeyError: If nothing with that simple name is declared
        """
        simple = short_type_name(name)
        for typedef in self.types:
            if short_type_name(typedef.name) == simple:
                return typedef
        try:
            return self.get_account(simple)
        except KeyError:
            pass
        return self.get_event(simple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgramSchema":
        """
        Build a schema from its JSON-compatible dictionary form.

        Raises:
            SchemaError: If required declarations are missing or malformed
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SchemaError(f"Invalid program schema: {e}") from e

    @classmethod
    def from_json(cls, text: str) -> "ProgramSchema":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise SchemaError(f"Program schema is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SchemaError(f"Program schema must be a JSON object, got {type(data).__name__}")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, pathlib.Path]) -> "ProgramSchema":
        return cls.from_json(pathlib.Path(path).read_text(encoding="utf-8-sig"))
