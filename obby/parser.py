from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .binreader import BufferLike, Cursor
from .constants import Compression, MAX_ENTRIES, MIN_ENTRY_SLOT
from .errors import DuplicateEntryWarning, OutOfBounds, TableCorrupt
from .header import Header, read_header
from .pathutil import name_problem


@dataclass(frozen=True)
class EntryDescriptor:
    name: str
    offset: int
    stored_size: int
    raw_size: int
    compression: Compression

    @property
    def compressed(self) -> bool:
        return self.compression is Compression.DEFLATE

    @property
    def end(self) -> int:
        return self.offset + self.stored_size


@dataclass(frozen=True)
class ArchiveIndex:
    """Entries in file order plus a name map; immutable once built."""

    entries: Tuple[EntryDescriptor, ...]
    _by_name: Dict[str, EntryDescriptor] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        by_name: Dict[str, EntryDescriptor] = {}
        for e in self.entries:
            by_name.setdefault(e.name, e)
        object.__setattr__(self, "_by_name", by_name)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[EntryDescriptor]:
        return iter(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[EntryDescriptor]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [e.name for e in self.entries]


def _read_entry_table(cur: Cursor, count: int) -> List[Tuple[str, int, int]]:
    slots: List[Tuple[str, int, int]] = []
    for i in range(count):
        name = cur.read_string("entry name", i, strict=True)
        problem = name_problem(name)
        if problem:
            raise TableCorrupt(problem, i)
        raw_size = cur.read_i32("entry length", i)
        stored_size = cur.read_i32("entry compressed length", i)
        if raw_size < 0 or stored_size < 0:
            raise TableCorrupt(f"negative size (raw={raw_size}, stored={stored_size})", i)
        slots.append((name, raw_size, stored_size))
    return slots


def parse(
    buffer: BufferLike, *, max_entries: int = MAX_ENTRIES, stacklevel: int = 2
) -> Tuple[Header, ArchiveIndex]:
    """Parse archive metadata: header and entry table.

    Payload bytes are never read here; only their ranges are checked against
    the data section, so every payload byte is covered by the header hash.
    Bytes after the data section are ignored. Duplicate names keep the first
    occurrence and are reported with a ``DuplicateEntryWarning``, attributed
    ``stacklevel`` frames up.
    """
    cur = Cursor(buffer)
    header = read_header(cur)
    count = cur.read_i32("entry_count")
    if count < 0:
        raise TableCorrupt(f"Negative entry count {count}")
    if count > max_entries:
        raise TableCorrupt(f"Entry count {count} exceeds limit {max_entries}")
    if count * MIN_ENTRY_SLOT > cur.remaining():
        raise TableCorrupt(f"Entry count {count} cannot fit in the remaining {cur.remaining()} bytes")

    slots = _read_entry_table(cur, count)

    # Payloads follow the table back to back, in table order, inside the data section
    offset = cur.tell()
    end = header.data_end
    entries: List[EntryDescriptor] = []
    seen = set()
    for i, (name, raw_size, stored_size) in enumerate(slots):
        if offset + stored_size > end:
            raise OutOfBounds(
                f"'{name}' payload [{offset}, {offset + stored_size}) exceeds data section ending at {end}", i
            )
        if name in seen:
            warnings.warn(
                DuplicateEntryWarning(f"entry #{i}: duplicate name '{name}' ignored; first occurrence kept"),
                stacklevel=stacklevel,
            )
        else:
            seen.add(name)
            entries.append(
                EntryDescriptor(
                    name=name,
                    offset=offset,
                    stored_size=stored_size,
                    raw_size=raw_size,
                    compression=Compression.RAW if stored_size == raw_size else Compression.DEFLATE,
                )
            )
        offset += stored_size
    return header, ArchiveIndex(tuple(entries))


def parse_index(buffer: BufferLike, *, max_entries: int = MAX_ENTRIES) -> ArchiveIndex:
    return parse(buffer, max_entries=max_entries, stacklevel=3)[1]


def list_entries(index: ArchiveIndex) -> List[str]:
    return index.names()
