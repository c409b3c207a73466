"""
In-memory transport implementation.

This module provides a transport that needs no cluster: accounts live in a
dictionary and submitted transactions are compiled, signed and recorded so
tests and local development can inspect exactly what would have been sent.
"""
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import base58

from ..instruction import Instruction
from ..keys import Keypair, Pubkey
from ..models import AccountRecord
from ._transaction import Transaction, compile_transaction
from .exceptions import TransportConnectionError
from .transport import Transport

logger = logging.getLogger(__name__)


@dataclass
class SubmittedTransaction:
    """A transaction accepted by the stub transport"""
    signature: str
    instruction: Instruction
    transaction: Transaction
    signers: List[Pubkey] = field(default_factory=list)


class StubTransport(Transport):
    """
    A simple in-memory implementation of the transport.

    Submissions are validated for signers the same way a cluster would and
    then recorded in ``submitted``; account records are served from
    ``accounts``.
    """

    def __init__(self):
        """Initialize the stub transport."""
        self.rpc_url = None
        self.initialized = False
        self.accounts: Dict[Pubkey, AccountRecord] = {}
        self.submitted: List[SubmittedTransaction] = []

    def is_available(self) -> bool:
        """
        Check if stub transport is available.

        Returns:
            Always True since stub transport has no dependencies
        """
        return True

    def initialize(self, rpc_url: str) -> None:
        self.rpc_url = rpc_url
        self.initialized = True
        logger.debug(f"Initialized stub transport for {rpc_url}")

    def set_account(
        self,
        address: Union[Pubkey, str],
        data: bytes,
        owner: Optional[Union[Pubkey, str]] = None,
        lamports: int = 1_000_000,
    ) -> AccountRecord:
        """Store raw account data at an address."""
        record = AccountRecord(
            data=bytes(data),
            owner=str(owner or Pubkey.default()),
            lamports=lamports,
        )
        self.accounts[Pubkey.coerce(address)] = record
        return record

    def _blockhash(self) -> str:
        seed = f"stub-blockhash-{len(self.submitted)}".encode()
        return base58.b58encode(hashlib.sha256(seed).digest()).decode("ascii")

    def submit(self, instruction: Instruction, signers: Sequence[Keypair]) -> str:
        """
        Record a signed single-instruction transaction.

        Raises:
            TransportConnectionError: If the stub transport is not initialized
            SubmitError: If signers are missing
        """
        if not self.initialized:
            raise TransportConnectionError("Stub transport not initialized")

        tx = compile_transaction(instruction, signers, self._blockhash())
        signature = tx.signature
        self.submitted.append(SubmittedTransaction(
            signature=signature,
            instruction=instruction,
            transaction=tx,
            signers=[signer.pubkey() for signer in signers],
        ))
        logger.info(f"Simulated submission of transaction {signature[:16]}...")
        return signature

    def fetch_record(self, address: Union[Pubkey, str]) -> Optional[AccountRecord]:
        if not self.initialized:
            raise TransportConnectionError("Stub transport not initialized")
        return self.accounts.get(Pubkey.coerce(address))

    def close(self) -> None:
        """Close the stub transport (no-op)."""
        pass
