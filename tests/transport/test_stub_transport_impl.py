"""
Tests for the StubTransport implementation.
"""
import pytest

from anchorgen_sdk.instruction import AccountMeta, Instruction
from anchorgen_sdk.keys import Keypair, Pubkey
from anchorgen_sdk.transport import (
    StubTransport,
    SubmitError,
    Transport,
    TransportConnectionError,
    get_stub_transport,
    get_transport,
)
from anchorgen_sdk.transport.rpc_transport import RpcTransport
from conftest import TEST_PROGRAM_ID, TEST_RPC_URL


class TestStubTransport:
    """Tests for the StubTransport implementation."""

    def test_is_available(self):
        """Test that StubTransport is always available."""
        assert StubTransport().is_available() is True

    def test_initialization(self):
        """Test StubTransport initialization."""
        transport = StubTransport()
        assert transport.initialized is False

        transport.initialize("stub://example")
        assert transport.initialized is True
        assert transport.rpc_url == "stub://example"

    def test_submit_without_initialization(self, payer, program_id):
        """Test that submit raises TransportConnectionError if not initialized."""
        with pytest.raises(TransportConnectionError):
            StubTransport().submit(Instruction(program_id, b""), [payer])

    def test_fetch_without_initialization(self, program_id):
        with pytest.raises(TransportConnectionError):
            StubTransport().fetch_record(program_id)

    def test_submit_records_transaction(self, stub_transport, payer, program_id):
        ix = Instruction(program_id, b"\x01\x02", [AccountMeta(payer.pubkey(), True, True)])
        signature = stub_transport.submit(ix, [payer])

        assert len(stub_transport.submitted) == 1
        submitted = stub_transport.submitted[0]
        assert submitted.signature == signature
        assert submitted.instruction is ix
        assert submitted.signers == [payer.pubkey()]
        assert submitted.transaction.signature == signature
        assert len(submitted.transaction.signatures) == 1

    def test_signatures_differ_between_submissions(self, stub_transport, payer, program_id):
        ix = Instruction(program_id, b"")
        first = stub_transport.submit(ix, [payer])
        second = stub_transport.submit(ix, [payer])
        assert first != second

    def test_missing_signer(self, stub_transport, payer, program_id):
        other = Keypair.from_seed(b"\x09" * 32).pubkey()
        ix = Instruction(program_id, b"", [AccountMeta(other, is_signer=True)])
        with pytest.raises(SubmitError):
            stub_transport.submit(ix, [payer])
        assert stub_transport.submitted == []

    def test_accounts(self, stub_transport):
        address = Keypair.from_seed(b"\x0a" * 32).pubkey()
        assert stub_transport.fetch_record(address) is None

        record = stub_transport.set_account(address, b"\x01\x02", owner=TEST_PROGRAM_ID)
        assert stub_transport.fetch_record(address) == record
        assert stub_transport.fetch_record(str(address)) == record
        assert record.owner == TEST_PROGRAM_ID

    def test_default_owner(self, stub_transport):
        record = stub_transport.set_account(Pubkey.default(), b"")
        assert record.owner == str(Pubkey.default())

    def test_context_manager(self):
        with StubTransport() as transport:
            assert isinstance(transport, Transport)


class TestGetTransport:
    """Tests for transport selection."""

    def test_get_stub_transport(self):
        assert isinstance(get_stub_transport(), StubTransport)

    def test_default_is_initialized_stub(self):
        transport = get_transport()
        assert isinstance(transport, StubTransport)
        assert transport.initialized

    def test_rpc_transport(self):
        transport = get_transport(TEST_RPC_URL, timeout=5)
        try:
            assert isinstance(transport, RpcTransport)
            assert transport.rpc_url == TEST_RPC_URL
            assert transport.timeout == 5
        finally:
            transport.close()
