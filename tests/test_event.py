"""
Tests for event emission and parsing.
"""
import base64
from dataclasses import dataclass
from unittest.mock import MagicMock, patch

import pytest
from pydantic import BaseModel

from anchorgen_sdk.discriminator import derive, event_discriminator
from anchorgen_sdk.event import (
    MAX_EVENT_SIZE,
    BoundedBuffer,
    EventEmitter,
    EventParser,
    ParsedEvent,
    ProgramLog,
    emit_event,
    emit_event_with_discriminator,
    extract_event_name,
    get_event_discriminator,
)
from anchorgen_sdk.exceptions import DecodeError, TagMismatchError
from anchorgen_sdk.models import EventDef, FieldDef, ProgramSchema
from conftest import TEST_PROGRAM_ID

OTHER_PROGRAM = "11111111111111111111111111111111"

# Largest Blob payload that fits: 8 tag bytes + 4 length bytes + payload
MAX_BLOB_PAYLOAD = MAX_EVENT_SIZE - 8 - 4


@dataclass
class SimpleEventData:
    count: int
    flag: bool


class SimpleEventModel(BaseModel):
    count: int
    flag: bool


class TestEventNames:
    """Tests for event naming and discriminators."""

    @pytest.mark.parametrize("name,expected", [
        ("my_program.events.TransferEvent", "TransferEvent"),
        ("TransferEvent", "TransferEvent"),
    ])
    def test_extract_event_name(self, name, expected):
        assert extract_event_name(name) == expected

    def test_discriminator_from_name(self):
        assert get_event_discriminator("my_program.events.SimpleEvent") == derive("event", "SimpleEvent")

    def test_discriminator_from_event_def(self, counter_schema):
        event = counter_schema.get_event("CountChanged")
        assert get_event_discriminator(event) == event_discriminator("CountChanged")

    def test_explicit_discriminator_is_not_used_for_derivation(self):
        event = EventDef(name="Custom", discriminator=[9] * 8)
        assert get_event_discriminator(event) == derive("event", "Custom")

    def test_emit_derives_while_variant_uses_pinned_tag(self):
        event = EventDef(name="Custom", discriminator=[9] * 8, fields=[FieldDef(name="x", type="u8")])
        channel = ProgramLog()
        assert emit_event(channel, event, {"x": 1})
        assert emit_event_with_discriminator(channel, event, {"x": 1}, event.tag)
        assert channel.records == [derive("event", "Custom") + b"\x01", bytes([9] * 8) + b"\x01"]


class TestEventEmitter:
    """Tests for publishing events through a log channel."""

    def test_simple_event_record(self, counter_schema):
        channel = ProgramLog()
        assert emit_event(channel, counter_schema.get_event("SimpleEvent"), {"count": 42, "flag": True})
        assert channel.records == [derive("event", "SimpleEvent") + (42).to_bytes(8, "little") + b"\x01"]
        assert channel.lines == [
            "Program data: " + base64.b64encode(channel.records[0]).decode("ascii")
        ]

    @pytest.mark.parametrize("value", [
        SimpleEventData(count=42, flag=True),
        SimpleEventModel(count=42, flag=True),
    ])
    def test_structured_values(self, counter_schema, value):
        channel = ProgramLog()
        assert EventEmitter(channel).emit(counter_schema.get_event("SimpleEvent"), value)
        assert channel.records[0][8:] == (42).to_bytes(8, "little") + b"\x01"

    def test_largest_event_is_published(self, counter_schema):
        channel = ProgramLog()
        assert emit_event(channel, counter_schema.get_event("Blob"), {"payload": b"\xab" * MAX_BLOB_PAYLOAD})
        assert len(channel.records[0]) == MAX_EVENT_SIZE

    def test_oversized_event_is_dropped(self, counter_schema):
        channel = ProgramLog()
        published = emit_event(channel, counter_schema.get_event("Blob"), {"payload": b"\xab" * (MAX_BLOB_PAYLOAD + 1)})
        assert published is False
        assert channel.records == []
        assert channel.lines == ["Program log: Warning: Event data truncated"]

    def test_unserializable_event_is_dropped(self, counter_schema):
        channel = ProgramLog()
        assert not emit_event(channel, counter_schema.get_event("SimpleEvent"), {"count": -1, "flag": True})
        assert channel.records == []
        assert channel.lines == ["Program log: Warning: Event serialization failed"]

    def test_warnings_are_rate_limited(self, counter_schema):
        event = counter_schema.get_event("Blob")
        value = {"payload": b"\x00" * 2000}
        with patch("anchorgen_sdk.event.logger") as mock_logger:
            emitter = EventEmitter(ProgramLog())
            emitter.emit(event, value)
            emitter.emit(event, value)
        assert mock_logger.warning.call_count == 1
        assert emitter.channel.lines.count("Program log: Warning: Event data truncated") == 2

    def test_custom_discriminator(self, counter_schema):
        channel = ProgramLog()
        tag = b"\x01\x02\x03\x04\x05\x06\x07\x08"
        event = counter_schema.get_event("SimpleEvent")
        assert emit_event_with_discriminator(channel, event, {"count": 1, "flag": False}, tag)
        assert channel.records[0] == tag + (1).to_bytes(8, "little") + b"\x00"

    def test_custom_channel(self, counter_schema):
        channel = MagicMock()
        EventEmitter(channel).emit(counter_schema.get_event("SimpleEvent"), {"count": 1, "flag": True})
        channel.log_data.assert_called_once()
        channel.log.assert_not_called()

    def test_layout_is_cached(self, counter_schema):
        emitter = EventEmitter()
        event = counter_schema.get_event("SimpleEvent")
        assert emitter.layout(event) is emitter.layout(event)

    def test_defined_event_fields_need_schema(self, counter_schema_dict):
        counter_schema_dict["events"].append({
            "name": "LimitsChanged",
            "fields": [{"name": "limits", "type": {"defined": "Limits"}}],
        })
        schema = ProgramSchema.from_dict(counter_schema_dict)
        channel = ProgramLog()
        emitter = EventEmitter(channel, schema=schema)
        assert emitter.emit(schema.get_event("LimitsChanged"), {"limits": {"max": 1, "labels": []}})
        assert channel.records[0][8:] == (1).to_bytes(8, "little") + b"\x00\x00\x00\x00"


class TestBoundedBuffer:
    """Tests for the fixed-capacity assembly buffer."""

    def test_write_and_read(self):
        with BoundedBuffer(4) as buffer:
            assert buffer.write(b"ab") == 2
            buffer.write(b"cd")
            assert buffer.getvalue() == b"abcd"
            assert len(buffer) == 4

    def test_overflow(self):
        with BoundedBuffer(4) as buffer:
            buffer.write(b"abc")
            with pytest.raises(BufferError):
                buffer.write(b"de")
            assert buffer.getvalue() == b"abc"

    def test_released_on_exit(self):
        with BoundedBuffer(4) as buffer:
            storage = buffer._data
            buffer.write(b"abcd")
        assert storage == bytearray(4)
        with pytest.raises(ValueError):
            buffer.getvalue()
        with pytest.raises(ValueError):
            buffer.write(b"x")

    def test_released_on_error(self):
        with pytest.raises(RuntimeError):
            with BoundedBuffer(4) as buffer:
                buffer.write(b"ab")
                raise RuntimeError("boom")
        assert len(buffer) == 0


class TestEventParser:
    """Tests for recovering events from transaction logs."""

    def _record(self, name, body):
        return "Program data: " + base64.b64encode(derive("event", name) + body).decode("ascii")

    def test_decode(self, counter_schema):
        parser = EventParser(counter_schema)
        record = derive("event", "CountChanged") + (1).to_bytes(8, "little") + (2).to_bytes(8, "little")
        assert parser.decode(record) == ParsedEvent(name="CountChanged", data={"old": 1, "new": 2})

    def test_decode_unknown_tag(self, counter_schema):
        with pytest.raises(TagMismatchError):
            EventParser(counter_schema).decode(derive("event", "Nope") + b"\x00")

    def test_parse_logs_round_trip(self, counter_schema):
        channel = ProgramLog()
        emitter = EventEmitter(channel, schema=counter_schema)
        emitter.emit(counter_schema.get_event("SimpleEvent"), {"count": 3, "flag": True})
        channel.log("not an event")
        emitter.emit(counter_schema.get_event("CountChanged"), {"old": 3, "new": 4})

        events = EventParser(counter_schema).parse_logs(channel.lines)
        assert events == [
            ParsedEvent(name="SimpleEvent", data={"count": 3, "flag": True}),
            ParsedEvent(name="CountChanged", data={"old": 3, "new": 4}),
        ]

    def test_parse_logs_filters_other_programs(self, counter_schema):
        lines = [
            f"Program {TEST_PROGRAM_ID} invoke [1]",
            self._record("SimpleEvent", (1).to_bytes(8, "little") + b"\x01"),
            f"Program {OTHER_PROGRAM} invoke [2]",
            self._record("SimpleEvent", (2).to_bytes(8, "little") + b"\x01"),
            f"Program {OTHER_PROGRAM} success",
            self._record("SimpleEvent", (3).to_bytes(8, "little") + b"\x00"),
            f"Program {TEST_PROGRAM_ID} consumed 1200 of 200000 compute units",
            f"Program {TEST_PROGRAM_ID} success",
        ]
        events = EventParser(counter_schema).parse_logs(lines)
        assert [event.data["count"] for event in events] == [1, 3]

    def test_parse_logs_skips_unknown_and_invalid(self, counter_schema):
        lines = [
            "Program data: !!!not-base64!!!",
            self._record("Unknown", b"\x00" * 8),
            self._record("SimpleEvent", (5).to_bytes(8, "little") + b"\x01"),
        ]
        events = EventParser(counter_schema).parse_logs(lines)
        assert events == [ParsedEvent(name="SimpleEvent", data={"count": 5, "flag": True})]

    def test_parse_logs_malformed_body(self, counter_schema):
        with pytest.raises(DecodeError):
            EventParser(counter_schema).parse_logs([self._record("SimpleEvent", b"\x01")])
