"""
Event emission and parsing.

Program side: an event is published as one opaque log record laid out as
``[discriminator][borsh body]``, assembled in a fixed 1 KiB buffer. An
event that does not fit, or does not encode, is dropped with a warning and
never interrupts the instruction that emitted it.

Client side: ``EventParser`` recovers events from a transaction's log lines.
"""
import base64
import binascii
import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from construct import Construct
from pydantic import BaseModel

from ._rate_limited_log import rate_limited_log
from .codec import BorshCodec
from .discriminator import DISCRIMINATOR_LENGTH, event_discriminator, format_discriminator, short_type_name
from .exceptions import EncodeError, TagMismatchError
from .models import EventDef, ProgramSchema

logger = logging.getLogger(__name__)

# Maximum size of one published event, discriminator included
MAX_EVENT_SIZE = 1024

EVENT_DISCRIMINATOR_LENGTH = DISCRIMINATOR_LENGTH

PROGRAM_LOG_PREFIX = "Program log: "
PROGRAM_DATA_PREFIX = "Program data: "

_INVOKE_RE = re.compile(r"^Program ([1-9A-HJ-NP-Za-km-z]+) invoke \[\d+\]$")
_EXIT_RE = re.compile(r"^Program ([1-9A-HJ-NP-Za-km-z]+) (success|failed)")


class LogChannel(Protocol):
    """Where a program publishes its log lines and data records"""

    def log(self, message: str) -> None:
        ...

    def log_data(self, *slices: bytes) -> None:
        ...


class ProgramLog:
    """
    In-process log channel.

    Keeps the Solana-style log lines and the raw data records published
    through it, and mirrors every line to the Python logger at DEBUG.
    """

    def __init__(self):
        self.lines: List[str] = []
        self.records: List[bytes] = []

    def log(self, message: str) -> None:
        line = f"{PROGRAM_LOG_PREFIX}{message}"
        self.lines.append(line)
        logger.debug(line)

    def log_data(self, *slices: bytes) -> None:
        self.records.append(b"".join(bytes(s) for s in slices))
        line = PROGRAM_DATA_PREFIX + " ".join(base64.b64encode(bytes(s)).decode("ascii") for s in slices)
        self.lines.append(line)
        logger.debug(line)

    def clear(self) -> None:
        self.lines.clear()
        self.records.clear()


class BoundedBuffer:
    """
    Fixed-capacity byte buffer for assembling one record.

    Writing past capacity raises ``BufferError``. Leaving the ``with`` block
    wipes and releases the storage whatever the exit path.
    """

    def __init__(self, capacity: int = MAX_EVENT_SIZE):
        self.capacity = capacity
        self._data: Optional[bytearray] = bytearray(capacity)
        self._length = 0

    def __enter__(self) -> "BoundedBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __len__(self) -> int:
        return self._length

    def write(self, data: bytes) -> int:
        if self._data is None:
            raise ValueError("Buffer has been released")
        end = self._length + len(data)
        if end > self.capacity:
            raise BufferError(f"Write of {len(data)} bytes exceeds buffer capacity {self.capacity}")
        self._data[self._length:end] = data
        self._length = end
        return len(data)

    def getvalue(self) -> bytes:
        if self._data is None:
            raise ValueError("Buffer has been released")
        return bytes(self._data[:self._length])

    def release(self) -> None:
        if self._data is not None:
            self._data[:] = bytes(self.capacity)
            self._data = None
        self._length = 0


def extract_event_name(full_name: str) -> str:
    """
    Strip the module path from an event type name.

    "my_program.events.TransferEvent" -> "TransferEvent"
    """
    return short_type_name(full_name)


def get_event_discriminator(event: Union[EventDef, str]) -> bytes:
    """The tag ``emit`` publishes under, derived from the simple name."""
    if isinstance(event, EventDef):
        return event_discriminator(event.simple_name)
    return event_discriminator(extract_event_name(event))


def _as_mapping(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


class EventEmitter:
    """
    Publishes events through a log channel.

    Emission never raises for an oversized or unencodable event; the event
    is dropped, a warning goes to the channel and to the Python logger, and
    ``emit`` returns False.
    """

    def __init__(
        self,
        channel: Optional[LogChannel] = None,
        codec: Optional[BorshCodec] = None,
        schema: Optional[ProgramSchema] = None,
    ):
        self.channel = channel if channel is not None else ProgramLog()
        self.codec = codec or BorshCodec(schema)
        self._layouts: Dict[str, Construct] = {}

    def layout(self, event: EventDef) -> Construct:
        if event.simple_name not in self._layouts:
            self._layouts[event.simple_name] = self.codec.struct_layout(event.fields)
        return self._layouts[event.simple_name]

    def emit(self, event: EventDef, value: Any) -> bool:
        """
        Publish an event under its derived discriminator.

        Returns:
            True if a record was published, False if the event was dropped
        """
        return self._emit(event, value, get_event_discriminator(event))

    def emit_with_discriminator(self, event: EventDef, value: Any, discriminator: bytes) -> bool:
        """Publish an event under a caller-supplied discriminator."""
        return self._emit(event, value, bytes(discriminator))

    def _emit(self, event: EventDef, value: Any, tag: bytes) -> bool:
        name = extract_event_name(event.name)
        layout = self.layout(event)
        value = _as_mapping(value)

        try:
            size = self.codec.serialized_size(layout, value)
        except EncodeError as e:
            self._warn("Event serialization failed", f"Event {name} could not be serialized: {e}")
            return False

        total = len(tag) + size
        if total > MAX_EVENT_SIZE:
            self._warn(
                "Event data truncated",
                f"Event {name} dropped: {total} bytes exceeds the {MAX_EVENT_SIZE} byte limit",
            )
            return False

        with BoundedBuffer(MAX_EVENT_SIZE) as buffer:
            buffer.write(tag)
            try:
                self.codec.serialize_into(layout, value, buffer)
            except (EncodeError, BufferError) as e:
                self._warn("Event serialization failed", f"Event {name} could not be serialized: {e}")
                return False
            self.channel.log_data(buffer.getvalue())
        return True

    def _warn(self, channel_message: str, detail: str) -> None:
        self.channel.log(f"Warning: {channel_message}")
        rate_limited_log(detail, level="warning", logger_instance=logger)


def emit_event(
    channel: LogChannel,
    event: EventDef,
    value: Any,
    codec: Optional[BorshCodec] = None,
) -> bool:
    return EventEmitter(channel, codec).emit(event, value)


def emit_event_with_discriminator(
    channel: LogChannel,
    event: EventDef,
    value: Any,
    discriminator: bytes,
    codec: Optional[BorshCodec] = None,
) -> bool:
    return EventEmitter(channel, codec).emit_with_discriminator(event, value, discriminator)


@dataclass(frozen=True)
class ParsedEvent:
    """An event recovered from program logs"""
    name: str
    data: Dict[str, Any]


class EventParser:
    """
    Decodes a program's events from transaction log lines.

    When the logs carry invoke/exit lines, only data records published
    while this program is the innermost running program are considered.
    """

    def __init__(self, schema: ProgramSchema, codec: Optional[BorshCodec] = None):
        self.schema = schema
        self.codec = codec or BorshCodec(schema)
        self.program_id = schema.address
        self._events: Dict[bytes, EventDef] = {}
        for event in schema.events:
            self._events.setdefault(event.tag, event)
        self._layouts: Dict[str, Construct] = {}

    def _layout(self, event: EventDef) -> Construct:
        if event.simple_name not in self._layouts:
            self._layouts[event.simple_name] = self.codec.struct_layout(event.fields)
        return self._layouts[event.simple_name]

    def decode(self, record: bytes) -> ParsedEvent:
        """
        Decode one event record.

        Raises:
            TagMismatchError: If the record's discriminator names no declared event
            DecodeError: If the body does not fit the event's layout
        """
        tag = bytes(record[:DISCRIMINATOR_LENGTH])
        event = self._events.get(tag) if len(tag) == DISCRIMINATOR_LENGTH else None
        if event is None:
            raise TagMismatchError(
                f"Unknown event discriminator: {format_discriminator(tag) or '<empty>'}",
                actual=tag,
            )
        data = self.codec.deserialize(self._layout(event), record[DISCRIMINATOR_LENGTH:])
        return ParsedEvent(name=event.simple_name, data=data)

    def parse_logs(self, lines: Iterable[str]) -> List[ParsedEvent]:
        """
        Extract this program's events from log lines.

        Data records with unknown discriminators or invalid base64 are
        skipped; a known discriminator with a malformed body raises.
        """
        events: List[ParsedEvent] = []
        stack: List[str] = []
        for line in lines:
            invoke = _INVOKE_RE.match(line)
            if invoke:
                stack.append(invoke.group(1))
                continue
            if _EXIT_RE.match(line):
                if stack:
                    stack.pop()
                continue
            if not line.startswith(PROGRAM_DATA_PREFIX):
                continue
            if stack and stack[-1] != self.program_id:
                continue

            try:
                record = b"".join(
                    base64.b64decode(chunk, validate=True)
                    for chunk in line[len(PROGRAM_DATA_PREFIX):].split()
                )
            except (binascii.Error, ValueError):
                logger.debug(f"Skipping undecodable program data line: {line[:64]}")
                continue
            if bytes(record[:DISCRIMINATOR_LENGTH]) not in self._events:
                continue
            events.append(self.decode(record))
        return events
