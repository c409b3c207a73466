"""
Transport layer for program clients.

This module provides an abstraction over how instructions reach a cluster
and how account records are read back, so that generated clients work the
same against a live RPC endpoint or the in-memory stub.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

from ..instruction import Instruction
from ..keys import Keypair, Pubkey
from ..models import AccountRecord

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Abstract base class for transport implementations.

    Implementations own connection state; callers own signers. Nothing at
    this layer retries on behalf of the program client.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if this transport is available for use.

        Returns:
            True if transport is available, False otherwise
        """
        pass

    @abstractmethod
    def initialize(self, rpc_url: str) -> None:
        """
        Initialize the transport with the given RPC URL.

        Raises:
            TransportConnectionError: If connection initialization fails
        """
        pass

    @abstractmethod
    def submit(self, instruction: Instruction, signers: Sequence[Keypair]) -> str:
        """
        Sign and submit a single-instruction transaction.

        The first signer pays the fee.

        Args:
            instruction: The instruction to submit
            signers: Keypairs authorizing the transaction

        Returns:
            The transaction signature as a base58 string

        Raises:
            SubmitError: If the transaction is rejected
            TransportError: For connection-level failures
        """
        pass

    @abstractmethod
    def fetch_record(self, address: Union[Pubkey, str]) -> Optional[AccountRecord]:
        """
        Fetch the raw account stored at an address.

        Returns:
            The account record, or None if no account exists there

        Raises:
            FetchError: If the endpoint reports an error
            TransportError: For connection-level failures
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close any open connections or resources."""
        pass

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def get_stub_transport() -> Transport:
    """
    Get an in-memory transport.

    This always returns a valid transport since the stub implementation
    needs no network.
    """
    from .stub_transport import StubTransport
    return StubTransport()


def get_transport(rpc_url: Optional[str] = None, **kwargs) -> Transport:
    """
    Get a transport for the given RPC URL.

    Args:
        rpc_url: Cluster RPC endpoint; the stub transport is used when omitted
        **kwargs: Passed to ``RpcTransport``

    Returns:
        An initialized transport
    """
    if rpc_url:
        from .rpc_transport import RpcTransport
        transport = RpcTransport(**kwargs)
        transport.initialize(rpc_url)
        logger.info(f"Using RPC transport for {rpc_url}")
        return transport

    logger.info("Using stub transport")
    transport = get_stub_transport()
    transport.initialize("stub://local")
    return transport
