"""
Pytest fixtures for the anchorgen SDK tests.
"""
import copy
import sys
import types

import pytest

from anchorgen_sdk._rate_limited_log import reset_rate_limits
from anchorgen_sdk.config import NetworkConfig
from anchorgen_sdk.keys import Keypair, Pubkey
from anchorgen_sdk.models import ProgramSchema
from anchorgen_sdk.transport import StubTransport

# Constants for testing
TEST_PROGRAM_ID = "Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS"
TEST_RPC_URL = "https://rpc.example.com"

COUNTER_SCHEMA = {
    "name": "counter",
    "address": TEST_PROGRAM_ID,
    "version": "0.2.0",
    "accounts": [
        {
            "name": "counter.state.Counter",
            "fields": [
                {"name": "authority", "type": "pubkey"},
                {"name": "count", "type": "u64"},
                {"name": "limits", "type": {"defined": "Limits"}},
                {"name": "bump", "type": "u8"},
            ],
        }
    ],
    "types": [
        {
            "name": "Limits",
            "fields": [
                {"name": "max", "type": "u64"},
                {"name": "labels", "type": {"vec": "string"}},
            ],
        }
    ],
    "events": [
        {
            "name": "counter.events.CountChanged",
            "fields": [
                {"name": "old", "type": "u64"},
                {"name": "new", "type": "u64"},
            ],
        },
        {
            "name": "SimpleEvent",
            "fields": [
                {"name": "count", "type": "u64"},
                {"name": "flag", "type": "bool"},
            ],
        },
        {
            "name": "Blob",
            "fields": [{"name": "payload", "type": "bytes"}],
        },
    ],
    "instructions": [
        {
            "name": "initialize",
            "accounts": [
                {"name": "counter", "isMut": True, "isSigner": True, "account": "Counter"},
                {"name": "authority", "isMut": True, "isSigner": True},
                {"name": "systemProgram"},
            ],
            "args": [
                {"name": "start", "type": "u64"},
                {"name": "limits", "type": {"defined": "Limits"}},
            ],
        },
        {
            "name": "increment",
            "accounts": [
                {"name": "counter", "isMut": True, "account": "Counter"},
                {"name": "authority", "isSigner": True},
            ],
        },
        {
            "name": "transfer",
            "accounts": [
                {"name": "from", "isSigner": True, "isMut": True},
                {"name": "to", "isMut": True},
            ],
            "args": [{"name": "amount", "type": "u64"}],
        },
    ],
    "errors": [{"code": 6000, "name": "Overflow", "msg": "Counter overflow"}],
    "constants": [{"name": "MAX_COUNT", "type": "u64", "value": "1000"}],
}


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Every test starts with an empty rate-limit cache."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture(autouse=True)
def _reset_network_cache():
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def counter_schema_dict():
    return copy.deepcopy(COUNTER_SCHEMA)


@pytest.fixture
def counter_schema(counter_schema_dict):
    return ProgramSchema.from_dict(counter_schema_dict)


@pytest.fixture
def program_id():
    return Pubkey.from_string(TEST_PROGRAM_ID)


@pytest.fixture
def stub_transport():
    transport = StubTransport()
    transport.initialize("stub://test")
    return transport


@pytest.fixture
def payer():
    """A deterministic fee payer keypair"""
    return Keypair.from_seed(bytes(range(32)))


@pytest.fixture
def limits():
    return {"max": 500, "labels": ["a", "bc"]}


def load_module(source, name="generated_client"):
    """Execute generated source as a fresh module."""
    module = types.ModuleType(name)
    module.__file__ = f"<{name}>"
    sys.modules[name] = module
    try:
        exec(compile(source, module.__file__, "exec"), module.__dict__)
    finally:
        sys.modules.pop(name, None)
    return module
