"""
Transport module for the anchorgen SDK.

This module provides the transports program clients use to submit
instructions and fetch account records: a JSON-RPC transport for live
clusters and an in-memory stub for tests and local development.
"""
from .exceptions import (
    FetchError,
    RpcResponseError,
    SubmitError,
    TransportConnectionError,
    TransportError,
    TransportTimeoutError,
)
from .rpc_transport import RpcTransport
from .stub_transport import StubTransport, SubmittedTransaction
from .transport import Transport, get_stub_transport, get_transport

__all__ = [
    'Transport',
    'RpcTransport',
    'StubTransport',
    'SubmittedTransaction',
    'get_transport',
    'get_stub_transport',
    'TransportError',
    'TransportConnectionError',
    'TransportTimeoutError',
    'RpcResponseError',
    'SubmitError',
    'FetchError',
]
