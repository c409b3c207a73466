"""
Anchor-style IDL export.

Renders a ``ProgramSchema`` as the JSON IDL document that Anchor tooling
reads: explicit discriminators on instructions, accounts and events, and
every struct body under ``types``.
"""
import json
import logging
import pathlib
from typing import Any, Dict, List, Optional, Union

from .discriminator import instruction_discriminator
from .models import ProgramSchema, TypeRef

logger = logging.getLogger(__name__)

DEFAULT_IDL_VERSION = "0.1.0"
DEFAULT_IDL_SPEC = "0.1.0"


def _type_json(type_ref: TypeRef) -> Any:
    if isinstance(type_ref, str):
        return type_ref
    kind, inner = next(iter(type_ref.items()))
    if kind == "defined":
        return {"defined": {"name": inner}}
    if kind == "array":
        return {"array": [_type_json(inner[0]), inner[1]]}
    return {kind: _type_json(inner)}


def _fields_json(fields) -> List[Dict[str, Any]]:
    return [{"name": field.name, "type": _type_json(field.type)} for field in fields]


def _struct_json(name: str, fields) -> Dict[str, Any]:
    return {"name": name, "type": {"kind": "struct", "fields": _fields_json(fields)}}


def generate_idl(schema: ProgramSchema, namespace: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the IDL document for a schema as a JSON-compatible dict.

    Roles carry ``writable``/``signer`` only when true. Struct bodies of
    account records and events are listed under ``types`` after the
    schema's own types, each simple name once.
    """
    metadata = {
        "name": schema.metadata.get("name", schema.name),
        "version": schema.metadata.get("version", schema.version or DEFAULT_IDL_VERSION),
        "spec": schema.metadata.get("spec", DEFAULT_IDL_SPEC),
    }
    for key, value in schema.metadata.items():
        metadata.setdefault(key, value)

    instructions = []
    for instruction in schema.instructions:
        accounts = []
        for role in instruction.accounts:
            entry: Dict[str, Any] = {"name": role.name}
            if role.is_mut:
                entry["writable"] = True
            if role.is_signer:
                entry["signer"] = True
            if role.record_type is not None:
                entry["account"] = role.record_type.simple_name
            accounts.append(entry)
        instructions.append({
            "name": instruction.name,
            "discriminator": list(instruction_discriminator(instruction.name, namespace)),
            "accounts": accounts,
            "args": _fields_json(instruction.args or []),
        })

    records = {}
    for record in schema.accounts:
        records.setdefault(record.simple_name, record)
    for instruction in schema.instructions:
        for role in instruction.accounts:
            if role.record_type is not None:
                records.setdefault(role.record_type.simple_name, role.record_type)

    types = []
    seen = set()
    for typedef in schema.types:
        if typedef.name not in seen:
            seen.add(typedef.name)
            types.append(_struct_json(typedef.name, typedef.fields))
    for struct in list(records.values()) + list(schema.events):
        if struct.simple_name not in seen:
            seen.add(struct.simple_name)
            types.append(_struct_json(struct.simple_name, struct.fields))

    idl: Dict[str, Any] = {
        "address": schema.address,
        "metadata": metadata,
        "instructions": instructions,
        "accounts": [
            {"name": name, "discriminator": list(record.tag)}
            for name, record in records.items()
        ],
        "types": types,
        "errors": [
            {k: v for k, v in error.model_dump().items() if v is not None}
            for error in schema.errors
        ],
    }
    if schema.constants:
        idl["constants"] = [
            {"name": c.name, "type": _type_json(c.type), "value": c.value}
            for c in schema.constants
        ]
    if schema.events:
        idl["events"] = [
            {"name": event.simple_name, "discriminator": list(event.tag)}
            for event in schema.events
        ]
    return idl


def generate_idl_json(schema: ProgramSchema, namespace: Optional[str] = None) -> str:
    return json.dumps(generate_idl(schema, namespace), indent=2) + "\n"


def write_idl_file(schema: ProgramSchema, path: Union[str, pathlib.Path], namespace: Optional[str] = None) -> pathlib.Path:
    """Write the IDL JSON to ``path``, creating parent directories as needed."""
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_idl_json(schema, namespace), encoding="utf-8")
    logger.info(f"Wrote IDL for {schema.name} to {path}")
    return path
