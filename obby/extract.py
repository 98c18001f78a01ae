from __future__ import annotations

import warnings

from .binreader import BufferLike
from .codec import CodecError, decode
from .constants import MAX_ENTRY_SIZE
from .errors import DecodeError, EntryNotFound, EntrySizeWarning
from .parser import ArchiveIndex, EntryDescriptor


def lookup(index: ArchiveIndex, name: str) -> EntryDescriptor:
    entry = index.get(name)
    if entry is None:
        raise EntryNotFound(name)
    return entry


def extract_descriptor(
    entry: EntryDescriptor,
    buffer: BufferLike,
    *,
    strict: bool = False,
    max_size: int = MAX_ENTRY_SIZE,
) -> bytes:
    view = memoryview(buffer)[entry.offset : entry.end]
    try:
        data, size_ok = decode(entry.compression, view, entry.raw_size, max_size)
    except CodecError as exc:
        raise DecodeError(str(exc), entry.name) from exc
    if not size_ok:
        msg = f"decoded {len(data)} bytes, header declares {entry.raw_size}"
        if strict:
            raise DecodeError(msg, entry.name)
        warnings.warn(EntrySizeWarning(f"{entry.name}: {msg}"), stacklevel=3)
    return data


def extract(
    index: ArchiveIndex,
    buffer: BufferLike,
    name: str,
    *,
    strict: bool = False,
    max_size: int = MAX_ENTRY_SIZE,
) -> bytes:
    """Return the decoded bytes of entry ``name``.

    Raw entries are returned verbatim. Deflate entries are decompressed; a
    corrupt or truncated stream raises ``DecodeError``. A decoded length that
    disagrees with the declared raw size is returned anyway and reported as an
    ``EntrySizeWarning``, or raised as ``DecodeError`` when ``strict`` is set.
    """
    return extract_descriptor(lookup(index, name), buffer, strict=strict, max_size=max_size)
