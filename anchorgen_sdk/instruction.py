"""
Instruction building.

Turns an ``InstructionDef`` plus caller-supplied addresses and arguments into
a transport-ready ``Instruction``: the account list in declared
order and a data payload of ``discriminator + borsh(args)``.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from construct import Construct

from .codec import BorshCodec
from .discriminator import instruction_discriminator
from .keys import Pubkey
from .models import InstructionDef, ProgramSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountMeta:
    """One account an instruction touches, with its access flags"""
    pubkey: Pubkey
    is_signer: bool = False
    is_writable: bool = False

    def __post_init__(self):
        object.__setattr__(self, "pubkey", Pubkey.coerce(self.pubkey))


@dataclass
class Instruction:
    """
    A program invocation: the target program, its accounts in order and the
    opaque data payload.
    """
    program_id: Pubkey
    data: bytes
    accounts: List[AccountMeta] = field(default_factory=list)

    def __post_init__(self):
        self.program_id = Pubkey.coerce(self.program_id)
        self.data = bytes(self.data)


def account_metas(instruction: InstructionDef, addresses: Sequence[Union[Pubkey, str]]) -> List[AccountMeta]:
    """
    Pair addresses with the instruction's roles, preserving declared order.

    Raises:
        ValueError: If the number of addresses does not match the roles
    """
    if len(addresses) != len(instruction.accounts):
        raise ValueError(
            f"Instruction '{instruction.name}' expects {len(instruction.accounts)} accounts, "
            f"got {len(addresses)}"
        )
    return [
        AccountMeta(pubkey=address, is_signer=role.is_signer, is_writable=role.is_mut)
        for role, address in zip(instruction.accounts, addresses)
    ]


def build_instruction_data(
    tag: bytes,
    args_layout: Optional[Construct],
    args: Optional[Dict[str, Any]],
    codec: BorshCodec,
) -> bytes:
    """
    Assemble an instruction payload.

    Raises:
        EncodeError: If the arguments do not fit the layout
    """
    if args_layout is None:
        return bytes(tag)
    return bytes(tag) + codec.serialize(args_layout, args if args is not None else {})


def build_instruction(
    program_id: Pubkey,
    instruction: InstructionDef,
    addresses: Sequence[Union[Pubkey, str]],
    args: Optional[Dict[str, Any]] = None,
    codec: Optional[BorshCodec] = None,
    namespace: Optional[str] = None,
) -> Instruction:
    """
    Build a tagged instruction for one ``InstructionDef``.

    Args:
        program_id: Address of the executing program
        instruction: The instruction definition
        addresses: One address per declared role, in declared order
        args: Argument bundle; ignored for void instructions
        codec: Codec used to resolve defined argument types
        namespace: Discriminator namespace for instructions

    Returns:
        An Instruction

    Raises:
        ValueError: If the address count does not match the roles
        EncodeError: If the arguments cannot be encoded
    """
    codec = codec or BorshCodec()
    metas = account_metas(instruction, addresses)
    tag = instruction_discriminator(instruction.name, namespace)
    layout = None if instruction.is_void else codec.struct_layout(instruction.args)
    data = build_instruction_data(tag, layout, args, codec)
    return Instruction(program_id, data, metas)


class InstructionBuilder:
    """
    Builds instructions for every instruction of a program schema.

    Discriminators and argument layouts are computed once per instruction
    name and reused across builds.
    """

    def __init__(
        self,
        schema: ProgramSchema,
        codec: Optional[BorshCodec] = None,
        namespace: Optional[str] = None,
    ):
        self.schema = schema
        self.codec = codec or BorshCodec(schema)
        self.namespace = namespace
        self.program_id = schema.program_id
        self._tags: Dict[str, bytes] = {}
        self._layouts: Dict[str, Optional[Construct]] = {}

    def discriminator(self, name: str) -> bytes:
        if name not in self._tags:
            self._tags[name] = instruction_discriminator(name, self.namespace)
        return self._tags[name]

    def args_layout(self, name: str) -> Optional[Construct]:
        if name not in self._layouts:
            instruction = self.schema.get_instruction(name)
            self._layouts[name] = None if instruction.is_void else self.codec.struct_layout(instruction.args)
        return self._layouts[name]

    def build(
        self,
        name: str,
        addresses: Sequence[Union[Pubkey, str]],
        args: Optional[Dict[str, Any]] = None,
    ) -> Instruction:
        """
        Build the named instruction.

        Raises:
            KeyError: If the schema has no instruction with that name
            ValueError: If the address count does not match the roles
            EncodeError: If the arguments cannot be encoded
        """
        instruction = self.schema.get_instruction(name)
        metas = account_metas(instruction, addresses)
        data = build_instruction_data(self.discriminator(name), self.args_layout(name), args, self.codec)
        logger.debug(f"Built instruction {name} with {len(metas)} accounts and {len(data)} data bytes")
        return Instruction(self.program_id, data, metas)
