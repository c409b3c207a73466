"""
Client code generation.

Turns a ``ProgramSchema`` into the source of a standalone Python module
with instruction builders, tag-checked account decoders, event
discriminators and a transport-backed client class.
"""
from .naming import sanitize_identifier, to_snake_case, to_upper_snake_case
from .writer import generate_client, write_client

__all__ = [
    'generate_client',
    'write_client',
    'sanitize_identifier',
    'to_snake_case',
    'to_upper_snake_case',
]
