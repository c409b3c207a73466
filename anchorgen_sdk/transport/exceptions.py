"""
Exceptions for the transport module.
"""
from typing import Optional

from ..exceptions import AnchorGenError


class TransportError(AnchorGenError):
    """Base exception for transport-related errors."""
    pass


class TransportConnectionError(TransportError):
    """Raised when the cluster RPC endpoint cannot be reached."""
    pass


class TransportTimeoutError(TransportError):
    """Raised when an RPC request times out."""
    pass


class RpcResponseError(TransportError):
    """Raised when the RPC endpoint answers with a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class SubmitError(RpcResponseError):
    """Raised when a transaction cannot be submitted."""
    pass


class FetchError(RpcResponseError):
    """Raised when an account cannot be fetched."""
    pass
