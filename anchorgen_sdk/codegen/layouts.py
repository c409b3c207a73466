"""
Borsh layout expressions for generated code.

Mirrors ``BorshCodec.layout_for`` but produces source text: the generated
module builds the same ``anchorgen_sdk.codec`` layouts the runtime codec
would.
"""
import json
from typing import Dict, List, Sequence, Tuple

from ..catalog import CatalogEntry
from ..discriminator import short_type_name
from ..exceptions import SchemaError
from ..models import FieldDef, ProgramSchema, TypeRef, iter_defined_names
from .naming import to_upper_snake_case

PRIMITIVE_EXPRESSIONS: Dict[str, str] = {
    "bool": "borsh.Bool",
    "u8": "borsh.U8",
    "u16": "borsh.U16",
    "u32": "borsh.U32",
    "u64": "borsh.U64",
    "u128": "borsh.U128",
    "i8": "borsh.I8",
    "i16": "borsh.I16",
    "i32": "borsh.I32",
    "i64": "borsh.I64",
    "i128": "borsh.I128",
    "f32": "borsh.F32",
    "f64": "borsh.F64",
    "string": "borsh.String",
    "bytes": "borsh.BorshBytes",
    "pubkey": "borsh.BorshPubkey",
}


def layout_variable(name: str) -> str:
    return f"{to_upper_snake_case(short_type_name(name))}_LAYOUT"


def layout_expression(type_ref: TypeRef, structs: Dict[str, str]) -> str:
    """
    Source expression for a type reference.

    Args:
        type_ref: Normalized IDL type reference
        structs: Variable name of every struct layout, by simple name

    Raises:
        SchemaError: If a defined type has no layout variable
    """
    if isinstance(type_ref, str):
        try:
            return PRIMITIVE_EXPRESSIONS[type_ref]
        except KeyError:
            raise SchemaError(f"Unknown primitive type: {type_ref!r}")

    kind, inner = next(iter(type_ref.items()))
    if kind == "vec":
        return f"borsh.Vec({layout_expression(inner, structs)})"
    if kind == "option":
        return f"borsh.Option({layout_expression(inner, structs)})"
    if kind == "array":
        element, length = inner
        return f"Array({length}, {layout_expression(element, structs)})"
    if kind == "defined":
        simple = short_type_name(inner)
        if simple not in structs:
            raise SchemaError(f"Unknown defined type: {inner}")
        return structs[simple]
    raise SchemaError(f"Unknown type kind: {kind!r}")


def struct_expression(fields: Sequence[FieldDef], structs: Dict[str, str]) -> List[str]:
    """Source lines of a ``borsh.CStruct`` over fields, in declared order."""
    if not fields:
        return ["borsh.CStruct()"]
    lines = ["borsh.CStruct("]
    for field in fields:
        lines.append(f"    {json.dumps(field.name)} / {layout_expression(field.type, structs)},")
    lines.append(")")
    return lines


def ordered_structs(
    schema: ProgramSchema,
    entries: Sequence[CatalogEntry],
) -> List[Tuple[str, List[FieldDef]]]:
    """
    Every struct the generated module needs, dependencies first.

    Structs are taken from the schema's types, then catalog records, then
    declared accounts, then events. Every declaration under one simple name
    must carry the same body. Declaration order is kept wherever
    dependencies allow it.

    Raises:
        SchemaError: If a struct references an unknown type or itself, or if
            two declarations share a simple name but not a body
    """
    declared: Dict[str, List[FieldDef]] = {}

    def declare(name: str, fields: List[FieldDef], kind: str) -> None:
        existing = declared.setdefault(name, fields)
        if existing is not fields and existing != fields:
            raise SchemaError(f"Conflicting definitions for '{name}': {kind} body differs from an earlier declaration")

    for typedef in schema.types:
        declare(short_type_name(typedef.name), typedef.fields, "type")
    for entry in entries:
        declare(entry.name, entry.record_type.fields, "account")
    for record in schema.accounts:
        declare(record.simple_name, record.fields, "account")
    for event in schema.events:
        declare(event.simple_name, event.fields, "event")

    ordered: List[Tuple[str, List[FieldDef]]] = []
    done = set()
    visiting: List[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            cycle = " -> ".join(visiting[visiting.index(name):] + [name])
            raise SchemaError(f"Recursive type definition: {cycle}")
        if name not in declared:
            raise SchemaError(f"Unknown defined type: {name}")
        visiting.append(name)
        for field in declared[name]:
            for dependency in iter_defined_names(field.type):
                visit(short_type_name(dependency))
        visiting.pop()
        done.add(name)
        ordered.append((name, declared[name]))

    for name in declared:
        visit(name)
    return ordered
