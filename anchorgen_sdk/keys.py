"""
Account addresses and signing keypairs.

Addresses are raw 32-byte Ed25519 public keys rendered in base58; keypairs
wrap a ``cryptography`` Ed25519 private key.
"""
import logging
from typing import Any, Union

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding, NoEncryption, PrivateFormat, PublicFormat
)

logger = logging.getLogger(__name__)

PUBKEY_LENGTH = 32
SEED_LENGTH = 32
SIGNATURE_LENGTH = 64


class Pubkey:
    """A 32-byte account address."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes):
        raw = bytes(raw)
        if len(raw) != PUBKEY_LENGTH:
            raise ValueError(f"Pubkey must be {PUBKEY_LENGTH} bytes, got {len(raw)}")
        self._raw = raw

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Pubkey":
        return cls(raw)

    @classmethod
    def from_string(cls, value: str) -> "Pubkey":
        """
        Parse a base58 address.

        Raises:
            ValueError: If the string is not base58 or does not decode to 32 bytes
        """
        try:
            raw = base58.b58decode(value)
        except ValueError as e:
            raise ValueError(f"Invalid base58 address {value!r}: {e}") from e
        if len(raw) != PUBKEY_LENGTH:
            raise ValueError(f"Invalid address {value!r}: decodes to {len(raw)} bytes")
        return cls(raw)

    @classmethod
    def default(cls) -> "Pubkey":
        """The all-zero address (the system program)."""
        return cls(bytes(PUBKEY_LENGTH))

    @classmethod
    def coerce(cls, value: Union["Pubkey", str, bytes]) -> "Pubkey":
        """Accept a Pubkey, a base58 string or raw bytes."""
        if isinstance(value, Pubkey):
            return value
        if isinstance(value, str):
            return cls.from_string(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(bytes(value))
        raise TypeError(f"Cannot convert {type(value).__name__} to Pubkey")

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return base58.b58encode(self._raw).decode("ascii")

    def __repr__(self) -> str:
        return f"Pubkey({str(self)!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Pubkey):
            return self._raw == other._raw
        return NotImplemented

    def __lt__(self, other: "Pubkey") -> bool:
        return self._raw < other._raw

    def __hash__(self) -> int:
        return hash(self._raw)


class Keypair:
    """An Ed25519 signing keypair."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        self._pubkey = Pubkey(private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw))

    @classmethod
    def generate(cls) -> "Keypair":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keypair":
        """
        Derive a keypair from a 32-byte seed.

        Raises:
            ValueError: If the seed is not 32 bytes
        """
        seed = bytes(seed)
        if len(seed) != SEED_LENGTH:
            raise ValueError(f"Seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Keypair":
        """
        Load the 64-byte ``seed + pubkey`` form used by Solana keypair files.

        Raises:
            ValueError: If the embedded public key does not match the seed
        """
        raw = bytes(raw)
        if len(raw) != SEED_LENGTH + PUBKEY_LENGTH:
            raise ValueError(f"Keypair bytes must be {SEED_LENGTH + PUBKEY_LENGTH} long, got {len(raw)}")
        keypair = cls.from_seed(raw[:SEED_LENGTH])
        if bytes(keypair.pubkey()) != raw[SEED_LENGTH:]:
            raise ValueError("Keypair public key does not match its seed")
        return keypair

    def pubkey(self) -> Pubkey:
        return self._pubkey

    def secret(self) -> bytes:
        return self._private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())

    def __bytes__(self) -> bytes:
        return self.secret() + bytes(self._pubkey)

    def sign_message(self, message: bytes) -> bytes:
        """Sign a message, returning the 64-byte signature."""
        return self._private_key.sign(bytes(message))

    def __repr__(self) -> str:
        return f"Keypair(pubkey={str(self._pubkey)!r})"
