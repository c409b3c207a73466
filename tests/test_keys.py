"""
Tests for addresses and keypairs.
"""
import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from anchorgen_sdk.keys import PUBKEY_LENGTH, SIGNATURE_LENGTH, Keypair, Pubkey
from conftest import TEST_PROGRAM_ID


class TestPubkey:
    """Tests for the base58 address type."""

    def test_round_trip(self):
        key = Pubkey.from_string(TEST_PROGRAM_ID)
        assert str(key) == TEST_PROGRAM_ID
        assert len(bytes(key)) == PUBKEY_LENGTH
        assert Pubkey.from_bytes(bytes(key)) == key

    def test_default_is_system_program(self):
        assert str(Pubkey.default()) == "1" * 32
        assert bytes(Pubkey.default()) == bytes(32)

    @pytest.mark.parametrize("value", ["not-a-pubkey", "0OIl", "1111", ""])
    def test_from_string_rejects(self, value):
        with pytest.raises(ValueError):
            Pubkey.from_string(value)

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            Pubkey(b"\x01" * 31)

    def test_coerce(self):
        key = Pubkey.from_string(TEST_PROGRAM_ID)
        assert Pubkey.coerce(key) is key
        assert Pubkey.coerce(TEST_PROGRAM_ID) == key
        assert Pubkey.coerce(bytes(key)) == key
        with pytest.raises(TypeError):
            Pubkey.coerce(42)

    def test_hashable_and_comparable(self):
        key = Pubkey.from_string(TEST_PROGRAM_ID)
        assert {key: 1}[Pubkey.from_string(TEST_PROGRAM_ID)] == 1
        assert key != TEST_PROGRAM_ID
        assert Pubkey.default() < key
        assert repr(key) == f"Pubkey('{TEST_PROGRAM_ID}')"


class TestKeypair:
    """Tests for Ed25519 keypairs."""

    def test_from_seed_is_deterministic(self):
        seed = bytes(range(32))
        assert Keypair.from_seed(seed).pubkey() == Keypair.from_seed(seed).pubkey()
        assert Keypair.from_seed(seed).secret() == seed

    def test_seed_length(self):
        with pytest.raises(ValueError):
            Keypair.from_seed(b"\x00" * 31)

    def test_generate_gives_distinct_keys(self):
        assert Keypair.generate().pubkey() != Keypair.generate().pubkey()

    def test_bytes_round_trip(self, payer):
        raw = bytes(payer)
        assert len(raw) == 64
        assert Keypair.from_bytes(raw).pubkey() == payer.pubkey()

    def test_from_bytes_rejects_mismatched_pubkey(self, payer):
        raw = bytes(payer)[:32] + bytes(32)
        with pytest.raises(ValueError):
            Keypair.from_bytes(raw)

    def test_sign_message_verifies(self, payer):
        signature = payer.sign_message(b"hello")
        assert len(signature) == SIGNATURE_LENGTH
        public_key = Ed25519PublicKey.from_public_bytes(bytes(payer.pubkey()))
        public_key.verify(signature, b"hello")
        with pytest.raises(InvalidSignature):
            public_key.verify(signature, b"other")
