"""
Discriminator derivation for instructions, accounts and events.

A discriminator is the first 8 bytes of ``sha256("<namespace>:<name>")``.
It prefixes every instruction payload, account record and event record so
that a reader can tell which shape follows.
"""
import hashlib
from typing import Optional

DISCRIMINATOR_LENGTH = 8

INSTRUCTION_NAMESPACE = "instruction"
ACCOUNT_NAMESPACE = "account"
EVENT_NAMESPACE = "event"

# Deployed Anchor programs dispatch instructions on this prefix
ANCHOR_INSTRUCTION_NAMESPACE = "global"


def derive(namespace: str, name: str) -> bytes:
    """
    Derive the 8-byte discriminator for a name within a namespace.

    Args:
        namespace: Tag namespace, e.g. "instruction", "account" or "event"
        name: Entity name (any string, including the empty string)

    Returns:
        The first 8 bytes of sha256("<namespace>:<name>")
    """
    preimage = f"{namespace}:{name}".encode("utf-8")
    return hashlib.sha256(preimage).digest()[:DISCRIMINATOR_LENGTH]


def instruction_discriminator(name: str, namespace: Optional[str] = None) -> bytes:
    return derive(namespace or INSTRUCTION_NAMESPACE, name)


def account_discriminator(name: str) -> bytes:
    return derive(ACCOUNT_NAMESPACE, name)


def event_discriminator(name: str) -> bytes:
    return derive(EVENT_NAMESPACE, name)


def validate_discriminator(data: bytes, expected: bytes) -> bool:
    """
    Check whether data starts with the expected discriminator.

    Data shorter than a discriminator never validates.
    """
    if len(data) < DISCRIMINATOR_LENGTH:
        return False
    return bytes(data[:DISCRIMINATOR_LENGTH]) == bytes(expected)


def format_discriminator(tag: bytes) -> str:
    """Format a discriminator as lowercase hex for logs and debugging."""
    return bytes(tag).hex()


def short_type_name(name: str) -> str:
    """
    Strip the module path from a type name.

    "my_program.state.Counter" -> "Counter"
    """
    return name.rsplit(".", 1)[-1]
