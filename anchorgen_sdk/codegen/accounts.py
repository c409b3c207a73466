"""
Account decoder and event constant generation.
"""
from dataclasses import dataclass
from typing import Dict, List

from ..catalog import CatalogEntry
from ..models import EventDef
from .naming import NameTable, docstring_text, to_snake_case, to_upper_snake_case


@dataclass
class DecoderSpec:
    """Names generated for one catalog entry"""
    entry: CatalogEntry
    snake: str
    discriminator_var: str
    layout_var: str
    decode_function: str
    record_function: str


def plan_decoder(entry: CatalogEntry, module_names: NameTable, structs: Dict[str, str]) -> DecoderSpec:
    """
    Raises:
        SchemaError: If a generated name clashes with another one
    """
    owner = f"account '{entry.name}'"
    snake = to_snake_case(entry.name)
    return DecoderSpec(
        entry=entry,
        snake=snake,
        discriminator_var=module_names.claim(f"{to_upper_snake_case(entry.name)}_DISCRIMINATOR", owner),
        layout_var=structs[entry.name],
        decode_function=module_names.claim(f"decode_{snake}", owner),
        record_function=module_names.claim(f"decode_{snake}_from_record", owner),
    )


def render_decoder(spec: DecoderSpec) -> List[str]:
    name = docstring_text(spec.entry.name)
    return [
        f"{spec.discriminator_var} = {bytes(spec.entry.tag)!r}",
        "",
        "",
        f"def {spec.decode_function}(data: bytes, layout: Construct = {spec.layout_var}) -> Dict[str, Any]:",
        '    """',
        f"    Decode {name} account data.",
        "",
        "    Raises:",
        f"        TagMismatchError: If the data does not start with the {name} discriminator",
        "        DecodeError: If the record body is malformed",
        '    """',
        f"    return decode_account_data(data, {spec.discriminator_var}, layout)",
        "",
        "",
        f"def {spec.record_function}(record: AccountRecord, layout: Construct = {spec.layout_var}) -> Dict[str, Any]:",
        f"    return {spec.decode_function}(record.data, layout)",
    ]


def render_events(events: List[EventDef], module_names: NameTable, structs: Dict[str, str]) -> List[str]:
    """
    Event discriminators plus an ``EVENTS`` table keyed by discriminator.

    Raises:
        SchemaError: If a generated name clashes with another one
    """
    lines: List[str] = []
    table: List[str] = []
    seen = set()
    for event in events:
        if event.simple_name in seen:
            continue
        seen.add(event.simple_name)
        var = module_names.claim(
            f"{to_upper_snake_case(event.simple_name)}_EVENT_DISCRIMINATOR",
            f"event '{event.name}'",
        )
        lines.append(f"{var} = {bytes(event.tag)!r}")
        table.append(f"    {var}: ({event.simple_name!r}, {structs[event.simple_name]}),")

    module_names.claim("EVENTS", "the event table")
    lines.append("")
    if table:
        lines.append("EVENTS = {")
        lines.extend(table)
        lines.append("}")
    else:
        lines.append("EVENTS = {}")
    return lines
