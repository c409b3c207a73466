"""
Tests for instruction building.
"""
import pytest

from anchorgen_sdk.codec import BorshCodec
from anchorgen_sdk.discriminator import derive, instruction_discriminator
from anchorgen_sdk.exceptions import EncodeError
from anchorgen_sdk.instruction import (
    AccountMeta,
    Instruction,
    InstructionBuilder,
    account_metas,
    build_instruction,
)
from anchorgen_sdk.keys import Keypair, Pubkey
from anchorgen_sdk.models import ProgramSchema

SENDER = Keypair.from_seed(b"\x01" * 32).pubkey()
RECIPIENT = Keypair.from_seed(b"\x02" * 32).pubkey()


class TestBuildInstruction:
    """Tests for the one-shot builder."""

    def test_transfer(self, counter_schema, program_id):
        ix = build_instruction(
            program_id,
            counter_schema.get_instruction("transfer"),
            [SENDER, RECIPIENT],
            {"amount": 1000},
        )
        assert ix.program_id == program_id
        assert ix.accounts == [
            AccountMeta(pubkey=SENDER, is_signer=True, is_writable=True),
            AccountMeta(pubkey=RECIPIENT, is_signer=False, is_writable=True),
        ]
        assert ix.data == derive("instruction", "transfer") + (1000).to_bytes(8, "little")

    def test_void_instruction_is_bare_tag(self, counter_schema, program_id):
        ix = build_instruction(program_id, counter_schema.get_instruction("increment"), [SENDER, RECIPIENT])
        assert ix.data == derive("instruction", "increment")
        assert len(ix.data) == 8

    def test_void_instruction_ignores_args(self, counter_schema, program_id):
        ix = build_instruction(
            program_id, counter_schema.get_instruction("increment"), [SENDER, RECIPIENT], {"unused": 1}
        )
        assert ix.data == derive("instruction", "increment")

    def test_global_namespace(self, counter_schema, program_id):
        ix = build_instruction(
            program_id,
            counter_schema.get_instruction("transfer"),
            [SENDER, RECIPIENT],
            {"amount": 1},
            namespace="global",
        )
        assert ix.data[:8] == derive("global", "transfer")

    def test_defined_args_need_schema_codec(self, counter_schema, program_id, limits):
        ix = build_instruction(
            program_id,
            counter_schema.get_instruction("initialize"),
            [SENDER, RECIPIENT, Pubkey.default()],
            {"start": 7, "limits": limits},
            codec=BorshCodec(counter_schema),
        )
        expected_body = (
            (7).to_bytes(8, "little")
            + (500).to_bytes(8, "little")
            + (2).to_bytes(4, "little") + b"\x01\x00\x00\x00a" + b"\x02\x00\x00\x00bc"
        )
        assert ix.data == derive("instruction", "initialize") + expected_body

    def test_string_addresses_are_accepted(self, counter_schema, program_id):
        ix = build_instruction(
            program_id, counter_schema.get_instruction("transfer"), [str(SENDER), str(RECIPIENT)], {"amount": 1}
        )
        assert [meta.pubkey for meta in ix.accounts] == [SENDER, RECIPIENT]


class TestAccountMetas:
    """Tests for role/address pairing."""

    def test_preserves_declared_order(self, counter_schema):
        third = Pubkey.default()
        metas = account_metas(counter_schema.get_instruction("initialize"), [RECIPIENT, SENDER, third])
        assert [meta.pubkey for meta in metas] == [RECIPIENT, SENDER, third]
        assert [(meta.is_signer, meta.is_writable) for meta in metas] == [
            (True, True), (True, True), (False, False),
        ]

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_count_mismatch(self, counter_schema, count):
        with pytest.raises(ValueError, match="expects 2 accounts"):
            account_metas(counter_schema.get_instruction("transfer"), [SENDER] * count)


class TestInstructionBuilder:
    """Tests for the schema-bound builder."""

    def test_build(self, counter_schema):
        builder = InstructionBuilder(counter_schema)
        ix = builder.build("transfer", [SENDER, RECIPIENT], {"amount": 1000})
        assert isinstance(ix, Instruction)
        assert ix.program_id == counter_schema.program_id
        assert ix.data == instruction_discriminator("transfer") + (1000).to_bytes(8, "little")

    def test_tags_and_layouts_are_cached(self, counter_schema):
        builder = InstructionBuilder(counter_schema)
        assert builder.discriminator("transfer") is builder.discriminator("transfer")
        assert builder.args_layout("transfer") is builder.args_layout("transfer")
        assert builder.args_layout("increment") is None

    def test_unknown_instruction(self, counter_schema):
        with pytest.raises(KeyError):
            InstructionBuilder(counter_schema).build("missing", [])

    def test_bad_args(self, counter_schema):
        builder = InstructionBuilder(counter_schema)
        with pytest.raises(EncodeError):
            builder.build("transfer", [SENDER, RECIPIENT], {"amount": -5})
        with pytest.raises(EncodeError):
            builder.build("transfer", [SENDER, RECIPIENT], {})

    def test_namespace(self, counter_schema):
        builder = InstructionBuilder(counter_schema, namespace="global")
        ix = builder.build("increment", [SENDER, RECIPIENT])
        assert ix.data == derive("global", "increment")

    def test_args_round_trip_with_reserved_field(self, counter_schema_dict):
        counter_schema_dict["instructions"][2]["args"].insert(0, {"name": "_reserved", "type": "u8"})
        builder = InstructionBuilder(ProgramSchema.from_dict(counter_schema_dict))
        args = {"_reserved": 7, "amount": 1000}
        ix = builder.build("transfer", [SENDER, RECIPIENT], args)
        assert builder.codec.deserialize(builder.args_layout("transfer"), ix.data[8:]) == args


def test_instruction_coerces_fields(program_id):
    ix = Instruction(str(program_id), bytearray(b"\x01"), [AccountMeta(str(SENDER), True, False)])
    assert ix.program_id == program_id
    assert ix.data == b"\x01"
    assert ix.accounts[0].pubkey == SENDER
