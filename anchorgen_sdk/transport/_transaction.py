"""
Single-instruction transaction assembly shared by transports.

Builds the legacy message wire format: a three-byte header, the ordered
account keys, the recent blockhash and the compiled instruction, with
compact-u16 length prefixes. The transaction prepends one Ed25519
signature per required signer.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import base58

from ..instruction import Instruction
from ..keys import Keypair, Pubkey
from .exceptions import SubmitError

logger = logging.getLogger(__name__)

BLOCKHASH_LENGTH = 32


def encode_length(value: int) -> bytes:
    """Compact-u16 encoding: seven bits per byte, high bit set on all but the last."""
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"Length {value} does not fit a compact-u16")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


@dataclass
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed: int
    num_readonly_unsigned: int


@dataclass
class CompiledInstruction:
    program_id_index: int
    accounts: List[int]
    data: bytes

    def serialize(self) -> bytes:
        return (
            bytes([self.program_id_index])
            + encode_length(len(self.accounts)) + bytes(self.accounts)
            + encode_length(len(self.data)) + bytes(self.data)
        )


@dataclass
class Message:
    """A compiled legacy message"""
    header: MessageHeader
    account_keys: List[Pubkey]
    recent_blockhash: str
    instructions: List[CompiledInstruction] = field(default_factory=list)

    @property
    def signer_keys(self) -> List[Pubkey]:
        return self.account_keys[:self.header.num_required_signatures]

    def serialize(self) -> bytes:
        blockhash = base58.b58decode(self.recent_blockhash)
        out = bytearray([
            self.header.num_required_signatures,
            self.header.num_readonly_signed,
            self.header.num_readonly_unsigned,
        ])
        out += encode_length(len(self.account_keys))
        for key in self.account_keys:
            out += bytes(key)
        out += blockhash
        out += encode_length(len(self.instructions))
        for compiled in self.instructions:
            out += compiled.serialize()
        return bytes(out)


@dataclass
class Transaction:
    signatures: List[bytes]
    message: Message

    @property
    def signature(self) -> str:
        """The first signature in base58, which identifies the transaction"""
        return base58.b58encode(self.signatures[0]).decode("ascii")

    def __bytes__(self) -> bytes:
        out = bytearray(encode_length(len(self.signatures)))
        for signature in self.signatures:
            out += signature
        out += self.message.serialize()
        return bytes(out)


def compile_message(instruction: Instruction, payer: Pubkey, blockhash: str) -> Message:
    """
    Order the instruction's accounts behind the fee payer and compile it.

    Keys are grouped signer-writable, signer-readonly, writable, readonly,
    keeping first-seen order inside each group. The program id joins as a
    readonly non-signer.

    Raises:
        SubmitError: If the blockhash is not a base58 32-byte hash
    """
    try:
        decoded = base58.b58decode(blockhash)
    except ValueError as e:
        raise SubmitError(f"Invalid blockhash {blockhash!r}: {e}") from e
    if len(decoded) != BLOCKHASH_LENGTH:
        raise SubmitError(f"Invalid blockhash {blockhash!r}: decodes to {len(decoded)} bytes")

    flags: Dict[Pubkey, List[bool]] = {payer: [True, True]}
    for meta in instruction.accounts:
        entry = flags.setdefault(meta.pubkey, [False, False])
        entry[0] = entry[0] or meta.is_signer
        entry[1] = entry[1] or meta.is_writable
    flags.setdefault(instruction.program_id, [False, False])

    groups = ((True, True), (True, False), (False, True), (False, False))
    keys = [key for group in groups for key, entry in flags.items() if tuple(entry) == group]
    header = MessageHeader(
        num_required_signatures=sum(1 for entry in flags.values() if entry[0]),
        num_readonly_signed=sum(1 for entry in flags.values() if entry[0] and not entry[1]),
        num_readonly_unsigned=sum(1 for entry in flags.values() if not entry[0] and not entry[1]),
    )
    index = {key: position for position, key in enumerate(keys)}
    compiled = CompiledInstruction(
        program_id_index=index[instruction.program_id],
        accounts=[index[meta.pubkey] for meta in instruction.accounts],
        data=bytes(instruction.data),
    )
    return Message(header=header, account_keys=keys, recent_blockhash=blockhash, instructions=[compiled])


def compile_transaction(instruction: Instruction, signers: Sequence[Keypair], blockhash: str) -> Transaction:
    """
    Compile, then sign, a legacy transaction carrying one instruction.

    The first signer is the fee payer. Signers the message does not require
    are dropped; required signers that are missing fail the submission.

    Raises:
        SubmitError: If there are no signers or a required signer is missing
    """
    if not signers:
        raise SubmitError("No signers provided; the first signer pays the transaction fee")

    message = compile_message(instruction, signers[0].pubkey(), blockhash)

    by_key: Dict[Pubkey, Keypair] = {}
    for signer in signers:
        by_key.setdefault(signer.pubkey(), signer)
    missing = [str(key) for key in message.signer_keys if key not in by_key]
    if missing:
        raise SubmitError(f"Missing signature for required signer(s): {', '.join(missing)}")

    payload = message.serialize()
    signatures = [by_key[key].sign_message(payload) for key in message.signer_keys]
    logger.debug(f"Compiled transaction with {len(message.account_keys)} keys and {len(signatures)} signatures")
    return Transaction(signatures=signatures, message=message)
