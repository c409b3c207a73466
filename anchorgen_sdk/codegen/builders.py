"""
Instruction builder generation.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..discriminator import instruction_discriminator
from ..models import InstructionDef
from .layouts import struct_expression
from .naming import NameTable, docstring_text, sanitize_identifier, to_upper_snake_case

# Names used inside generated function bodies
RESERVED_LOCALS = frozenset({
    "self", "args", "signers", "program_id", "accounts", "data",
    "instruction", "address", "layout", "record",
})


@dataclass
class BuilderSpec:
    """Names generated for one instruction"""
    instruction: InstructionDef
    function: str
    discriminator_var: str
    args_var: Optional[str]
    parameters: List[str]


def plan_builder(instruction: InstructionDef, module_names: NameTable) -> BuilderSpec:
    """
    Claim the module-level names for one instruction.

    Raises:
        SchemaError: If a generated name clashes with another one
    """
    owner = f"instruction '{instruction.name}'"
    upper = to_upper_snake_case(instruction.name)
    function = module_names.claim(sanitize_identifier(instruction.name), owner)
    discriminator_var = module_names.claim(f"{upper}_INSTRUCTION_DISCRIMINATOR", owner)
    args_var = None
    if not instruction.is_void:
        args_var = module_names.claim(f"{upper}_ARGS_LAYOUT", owner)
    return BuilderSpec(instruction, function, discriminator_var, args_var, [])


def assign_parameters(spec: BuilderSpec, module_level: Iterable[str]) -> None:
    """
    Name one parameter per role, in declared order.

    Parameters never shadow module-level names or the locals of the
    generated bodies.

    Raises:
        SchemaError: If two roles sanitize to the same parameter name
    """
    reserved = set(RESERVED_LOCALS) | set(module_level)
    params = NameTable(f"instruction '{spec.instruction.name}'")
    spec.parameters = [
        params.claim(sanitize_identifier(role.name, reserved), f"account '{role.name}'")
        for role in spec.instruction.accounts
    ]


def signature_lines(spec: BuilderSpec, leading: Iterable[str] = (), trailing: Iterable[str] = ()) -> List[str]:
    params = list(leading) + [f"{name}: Pubkey" for name in spec.parameters]
    if spec.args_var is not None:
        params.append("args: Dict[str, Any]")
    params.extend(trailing)
    return params


def render_builder(spec: BuilderSpec, namespace: Optional[str], structs: Dict[str, str]) -> List[str]:
    """Source lines for an instruction's constants and builder function."""
    instruction = spec.instruction
    tag = instruction_discriminator(instruction.name, namespace)

    lines = [f"{spec.discriminator_var} = {bytes(tag)!r}"]
    if spec.args_var is not None:
        expression = struct_expression(instruction.args, structs)
        lines.append(f"{spec.args_var} = {expression[0]}")
        lines.extend(expression[1:])
    lines.append("")
    lines.append("")

    params = signature_lines(spec, trailing=["program_id: Pubkey = PROGRAM_ID"])
    lines.append(f"def {spec.function}(")
    for param in params:
        lines.append(f"    {param},")
    lines.append(") -> Instruction:")
    lines.append(f'    """Build a ``{docstring_text(instruction.name)}`` instruction."""')
    if spec.parameters:
        lines.append("    accounts = [")
        for name, role in zip(spec.parameters, instruction.accounts):
            lines.append(
                f"        AccountMeta(pubkey={name}, is_signer={role.is_signer}, is_writable={role.is_mut}),"
            )
        lines.append("    ]")
    else:
        lines.append("    accounts = []")
    if spec.args_var is not None:
        lines.append(f"    data = {spec.discriminator_var} + encode({spec.args_var}, args)")
    else:
        lines.append(f"    data = {spec.discriminator_var}")
    lines.append("    return Instruction(program_id, data, accounts)")
    return lines
