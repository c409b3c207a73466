"""
anchorgen SDK - typed clients for discriminator-tagged on-chain programs.
"""
from .catalog import RecordCatalog, check_discriminator_collisions, collect_record_types, decode_account_data
from .client import ProgramClient
from .codec import BorshCodec
from .codegen import generate_client, write_client
from .config import GeneratorConfig, NetworkConfig
from .discriminator import (
    account_discriminator,
    derive,
    event_discriminator,
    instruction_discriminator,
)
from .event import (
    MAX_EVENT_SIZE,
    EventEmitter,
    EventParser,
    ParsedEvent,
    ProgramLog,
    emit_event,
    emit_event_with_discriminator,
    extract_event_name,
    get_event_discriminator,
)
from .exceptions import (
    AnchorGenError,
    DecodeError,
    DiscriminatorCollisionError,
    EncodeError,
    SchemaError,
    TagMismatchError,
)
from .idl import generate_idl, generate_idl_json, write_idl_file
from .instruction import AccountMeta, Instruction, InstructionBuilder, build_instruction
from .keys import Keypair, Pubkey
from .models import (
    AccountRecord,
    EventDef,
    FieldDef,
    InstructionDef,
    ProgramSchema,
    RecordType,
    RoleConstraint,
    TypeDef,
)
from .version import __version__

__all__ = [
    "ProgramClient",
    "ProgramSchema",
    "InstructionDef",
    "RoleConstraint",
    "RecordType",
    "EventDef",
    "FieldDef",
    "TypeDef",
    "AccountRecord",
    "BorshCodec",
    "AccountMeta",
    "Instruction",
    "InstructionBuilder",
    "Pubkey",
    "Keypair",
    "build_instruction",
    "RecordCatalog",
    "collect_record_types",
    "decode_account_data",
    "check_discriminator_collisions",
    "derive",
    "instruction_discriminator",
    "account_discriminator",
    "event_discriminator",
    "MAX_EVENT_SIZE",
    "EventEmitter",
    "EventParser",
    "ParsedEvent",
    "ProgramLog",
    "emit_event",
    "emit_event_with_discriminator",
    "extract_event_name",
    "get_event_discriminator",
    "generate_client",
    "write_client",
    "generate_idl",
    "generate_idl_json",
    "write_idl_file",
    "GeneratorConfig",
    "NetworkConfig",
    "AnchorGenError",
    "SchemaError",
    "DiscriminatorCollisionError",
    "EncodeError",
    "DecodeError",
    "TagMismatchError",
    "__version__",
]
