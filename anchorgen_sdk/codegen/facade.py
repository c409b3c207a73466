"""
Generated client class.
"""
from typing import List, Sequence

from .accounts import DecoderSpec
from .builders import BuilderSpec, signature_lines
from .naming import NameTable, docstring_text


def render_facade(
    class_name: str,
    program_name: str,
    builders: Sequence[BuilderSpec],
    decoders: Sequence[DecoderSpec],
) -> List[str]:
    """
    Source lines for the client class.

    One ``send_<instruction>`` method per builder and one ``get_<account>``
    method per catalog entry.

    Raises:
        SchemaError: If two generated method names clash
    """
    methods = NameTable(f"class {class_name}", taken=("transport", "program_id"))
    lines = [
        f"class {class_name}:",
        '    """',
        f"    Client for the {program_name} program.",
        "",
        "    Every ``send_*`` call submits exactly once through the transport;",
        "    ``get_*`` calls fetch and decode fresh account data each time.",
        '    """',
        "",
        "    def __init__(self, transport: Transport, program_id: Pubkey = PROGRAM_ID):",
        "        self.transport = transport",
        "        self.program_id = program_id",
    ]

    for spec in builders:
        method = methods.claim(f"send_{spec.function.rstrip('_')}", f"instruction '{spec.instruction.name}'")
        params = signature_lines(spec, leading=["self"], trailing=["signers: Sequence[Keypair]"])
        call_args = list(spec.parameters)
        if spec.args_var is not None:
            call_args.append("args")
        call_args.append("program_id=self.program_id")

        lines.append("")
        lines.append(f"    def {method}(")
        for param in params:
            lines.append(f"        {param},")
        lines.append("    ) -> str:")
        lines.append(f'        """Build and submit a ``{docstring_text(spec.instruction.name)}`` instruction."""')
        lines.append(f"        instruction = {spec.function}({', '.join(call_args)})")
        lines.append("        return self.transport.submit(instruction, signers)")

    for spec in decoders:
        method = methods.claim(f"get_{spec.snake}", f"account '{spec.entry.name}'")
        lines.append("")
        lines.append(
            f"    def {method}(self, address: Pubkey, layout: Construct = {spec.layout_var}) -> Optional[Dict[str, Any]]:"
        )
        lines.append(f'        """Fetch and decode a {docstring_text(spec.entry.name)} account; None if it does not exist."""')
        lines.append("        record = self.transport.fetch_record(address)")
        lines.append("        if record is None:")
        lines.append("            return None")
        lines.append(f"        return {spec.record_function}(record, layout)")
    return lines
