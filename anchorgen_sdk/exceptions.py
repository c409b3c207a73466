"""
Exceptions for the anchorgen SDK.
"""
from typing import Optional


class AnchorGenError(Exception):
    """Base exception for all anchorgen errors."""
    pass


class SchemaError(AnchorGenError):
    """Raised when a program schema is missing required declarations or is malformed."""
    pass


class DiscriminatorCollisionError(SchemaError):
    """Raised when two distinct names in one program derive the same discriminator."""

    def __init__(self, message: str, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(message)


class EncodeError(AnchorGenError):
    """Raised when a value cannot be serialized with its Borsh layout."""
    pass


class DecodeError(AnchorGenError):
    """Raised when bytes are malformed for the target layout."""
    pass


class TagMismatchError(DecodeError):
    """Raised when the leading discriminator of a payload is not the expected one."""

    def __init__(self, message: str, expected: Optional[bytes] = None, actual: Optional[bytes] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)
