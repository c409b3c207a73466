"""
Account record catalog.

Collects the distinct account record types referenced by a program's
instructions and decodes account data after checking its leading
discriminator.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from construct import Construct

from .codec import BorshCodec
from .discriminator import (
    ACCOUNT_NAMESPACE,
    DISCRIMINATOR_LENGTH,
    EVENT_NAMESPACE,
    INSTRUCTION_NAMESPACE,
    format_discriminator,
    instruction_discriminator,
    validate_discriminator,
)
from .exceptions import DiscriminatorCollisionError, TagMismatchError
from .models import AccountRecord, InstructionDef, ProgramSchema, RecordType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """One distinct account record type, keyed by its simple name"""
    name: str
    tag: bytes
    record_type: RecordType


def collect_record_types(instructions: Sequence[InstructionDef]) -> List[CatalogEntry]:
    """
    Deduplicate the record types referenced by instruction roles.

    Instructions are walked in order, then roles in order; the first record
    type seen under a simple name wins and later ones with the same simple
    name are skipped. Roles without a record type are not catalog entries.
    """
    entries: List[CatalogEntry] = []
    seen = set()
    for instruction in instructions:
        for role in instruction.accounts:
            record = role.record_type
            if record is None:
                continue
            name = record.simple_name
            if name in seen:
                continue
            seen.add(name)
            entries.append(CatalogEntry(name=name, tag=record.tag, record_type=record))
    return entries


def decode_account_data(
    data: bytes,
    tag: bytes,
    layout: Construct,
    codec: Optional[BorshCodec] = None,
) -> Any:
    """
    Decode account data whose first 8 bytes must equal ``tag``.

    Raises:
        TagMismatchError: If the data is too short or carries another tag
        DecodeError: If the remaining bytes do not fit the layout
    """
    if not validate_discriminator(data, tag):
        actual = bytes(data[:DISCRIMINATOR_LENGTH])
        raise TagMismatchError(
            f"Account discriminator mismatch: expected {format_discriminator(tag)}, "
            f"got {format_discriminator(actual) or '<empty>'}",
            expected=bytes(tag),
            actual=actual,
        )
    codec = codec or BorshCodec()
    return codec.deserialize(layout, data[DISCRIMINATOR_LENGTH:])


def decode_account_record(
    record: AccountRecord,
    tag: bytes,
    layout: Construct,
    codec: Optional[BorshCodec] = None,
) -> Any:
    """Decode a fetched account record; see ``decode_account_data``."""
    return decode_account_data(record.data, tag, layout, codec)


class RecordCatalog:
    """
    Catalog of a schema's record types with their layouts.

    Lookups are by simple name.
    """

    def __init__(self, schema: ProgramSchema, codec: Optional[BorshCodec] = None):
        self.schema = schema
        self.codec = codec or BorshCodec(schema)
        self.entries = collect_record_types(schema.instructions)
        self._by_name: Dict[str, CatalogEntry] = {entry.name: entry for entry in self.entries}
        self._layouts: Dict[str, Construct] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, name: str) -> CatalogEntry:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Account type '{name}' is not referenced by any instruction")

    def layout(self, name: str) -> Construct:
        if name not in self._layouts:
            self._layouts[name] = self.codec.struct_layout(self.get(name).record_type.fields)
        return self._layouts[name]

    def decode(self, name: str, data: bytes, layout: Optional[Construct] = None) -> Any:
        entry = self.get(name)
        return decode_account_data(data, entry.tag, layout if layout is not None else self.layout(name), self.codec)

    def decode_record(self, name: str, record: AccountRecord, layout: Optional[Construct] = None) -> Any:
        return self.decode(name, record.data, layout)


def check_discriminator_collisions(schema: ProgramSchema, namespace: Optional[str] = None) -> None:
    """
    Verify that distinct names in one program never share a discriminator.

    Duplicate instruction names map to the same (namespace, name) pair and
    are not reported.

    Raises:
        DiscriminatorCollisionError: If two distinct pairs derive the same tag
    """
    owners: Dict[bytes, Tuple[str, str]] = {}

    def _claim(tag: bytes, pair: Tuple[str, str]) -> None:
        owner = owners.setdefault(bytes(tag), pair)
        if owner != pair:
            first = f"{owner[0]}:{owner[1]}"
            second = f"{pair[0]}:{pair[1]}"
            raise DiscriminatorCollisionError(
                f"Discriminator {format_discriminator(tag)} is shared by '{first}' and '{second}'",
                first=first,
                second=second,
            )

    instruction_namespace = namespace or INSTRUCTION_NAMESPACE
    for instruction in schema.instructions:
        _claim(instruction_discriminator(instruction.name, namespace), (instruction_namespace, instruction.name))
    for entry in collect_record_types(schema.instructions):
        _claim(entry.tag, (ACCOUNT_NAMESPACE, entry.name))
    for event in schema.events:
        _claim(event.tag, (EVENT_NAMESPACE, event.simple_name))
