"""
Client module assembly.

Plans every generated name before rendering any source, so a schema that
cannot be generated fails before a single line is produced.
"""
import json
import logging
import pathlib
from typing import Dict, List, Optional, Union

from ..catalog import check_discriminator_collisions, collect_record_types
from ..config import GeneratorConfig
from ..models import ProgramSchema
from ..version import __version__
from .accounts import plan_decoder, render_decoder, render_events
from .builders import assign_parameters, plan_builder, render_builder
from .facade import render_facade
from .layouts import layout_variable, ordered_structs, struct_expression
from .naming import NameTable, docstring_text

logger = logging.getLogger(__name__)

MODULE_IMPORTS = [
    "from typing import Any, Dict, Optional, Sequence",
    "",
    "from construct import Array, Construct",
    "",
    "from anchorgen_sdk import codec as borsh",
    "from anchorgen_sdk.catalog import decode_account_data",
    "from anchorgen_sdk.codec import encode",
    "from anchorgen_sdk.instruction import AccountMeta, Instruction",
    "from anchorgen_sdk.keys import Keypair, Pubkey",
    "from anchorgen_sdk.models import AccountRecord",
    "from anchorgen_sdk.transport import Transport",
]

IMPORTED_NAMES = (
    "Any", "Dict", "Optional", "Sequence",
    "borsh", "Array", "Construct",
    "AccountMeta", "Instruction", "Keypair", "Pubkey",
    "decode_account_data", "encode", "AccountRecord", "Transport",
    "PROGRAM_ID", "INSTRUCTION_NAMESPACE",
)


def _section(title: str) -> List[str]:
    return ["", "", f"# {title}", ""]


def generate_client(schema: ProgramSchema, config: Optional[GeneratorConfig] = None) -> str:
    """
    Generate the Python source of a typed client module for a schema.

    Args:
        schema: Validated program schema
        config: Generator settings; defaults apply when omitted

    Returns:
        The complete module source

    Raises:
        SchemaError: If the schema cannot be expressed as a client module
        DiscriminatorCollisionError: If two names derive the same discriminator
    """
    config = config or GeneratorConfig()
    namespace = config.instruction_namespace
    if config.check_collisions:
        check_discriminator_collisions(schema, namespace)

    entries = collect_record_types(schema.instructions)
    module_names = NameTable(f"the client module for '{schema.name}'", taken=IMPORTED_NAMES)
    module_names.claim(config.client_class_name, "the client class")

    structs: Dict[str, str] = {}
    ordered = ordered_structs(schema, entries)
    for name, _ in ordered:
        structs[name] = module_names.claim(layout_variable(name), f"type '{name}'")

    builders = [plan_builder(instruction, module_names) for instruction in schema.instructions]
    decoders = [plan_decoder(entry, module_names, structs) for entry in entries]
    event_lines = render_events(schema.events, module_names, structs)
    for spec in builders:
        assign_parameters(spec, module_names)
    facade_lines = render_facade(config.client_class_name, docstring_text(schema.name), builders, decoders)

    lines = [f"# Code generated by anchorgen {__version__} from the {schema.name!r} program schema. DO NOT EDIT."]
    if config.header_comment:
        lines.extend(f"# {line}".rstrip() for line in config.header_comment.splitlines())
    lines.append(f'"""Client for the {docstring_text(schema.name)} program."""')
    lines.extend(MODULE_IMPORTS)
    lines.append("")
    lines.append(f"PROGRAM_ID = Pubkey.from_string({json.dumps(schema.address)})")
    lines.append(f"INSTRUCTION_NAMESPACE = {json.dumps(namespace)}")

    if ordered:
        lines.extend(_section("Types"))
        for index, (name, fields) in enumerate(ordered):
            if index:
                lines.append("")
            expression = struct_expression(fields, structs)
            lines.append(f"{structs[name]} = {expression[0]}")
            lines.extend(expression[1:])

    if builders:
        lines.extend(_section("Instructions"))
        for index, spec in enumerate(builders):
            if index:
                lines.extend(["", ""])
            lines.extend(render_builder(spec, namespace, structs))

    if decoders:
        lines.extend(_section("Accounts"))
        for index, spec in enumerate(decoders):
            if index:
                lines.extend(["", ""])
            lines.extend(render_decoder(spec))

    lines.extend(_section("Events"))
    lines.extend(event_lines)

    lines.extend(["", ""])
    lines.extend(facade_lines)

    logger.debug(
        f"Generated client for {schema.name}: {len(builders)} instructions, "
        f"{len(decoders)} accounts, {len(schema.events)} events"
    )
    return "\n".join(lines) + "\n"


def write_client(
    schema: ProgramSchema,
    path: Union[str, pathlib.Path],
    config: Optional[GeneratorConfig] = None,
) -> pathlib.Path:
    """
    Generate a client module and write it to ``path``.

    Nothing is written if generation fails. Parent directories are created.
    """
    source = generate_client(schema, config)
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(source, encoding="utf-8")
    logger.info(f"Wrote {schema.name} client to {path}")
    return path
