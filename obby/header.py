from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .binreader import Cursor
from .constants import OBBY_MAGIC, HASH_SIZE, SIGNATURE_SIZE
from .errors import BadMagic, OutOfBounds, TableCorrupt


@dataclass(frozen=True)
class Header:
    api_version: str
    hash: bytes
    signature: Optional[bytes]
    data_offset: int
    data_length: int
    plugin_assembly: str
    plugin_version: str

    @property
    def is_signed(self) -> bool:
        return self.signature is not None

    @property
    def data_end(self) -> int:
        return self.data_offset + self.data_length


def read_header(cur: Cursor) -> Header:
    """Read everything up to (not including) the entry count.

    Leaves ``cur`` positioned at the entry count field.
    """
    if len(cur) < len(OBBY_MAGIC):
        raise BadMagic("Buffer too short for archive magic")
    magic = bytes(cur.read_bytes(len(OBBY_MAGIC), "magic"))
    if magic != OBBY_MAGIC:
        raise BadMagic(f"Bad archive magic {magic!r}")
    api_version = cur.read_string("api_version")
    digest = bytes(cur.read_bytes(HASH_SIZE, "hash"))
    signature = None
    if cur.read_u8("is_signed") != 0:
        signature = bytes(cur.read_bytes(SIGNATURE_SIZE, "signature"))
    data_length = cur.read_i32("data_length")
    if data_length < 0:
        raise TableCorrupt(f"Negative data length {data_length}")
    data_offset = cur.tell()
    if data_length > cur.remaining():
        raise OutOfBounds(
            f"Data section declares {data_length} bytes, only {cur.remaining()} present (truncated archive?)"
        )
    plugin_assembly = cur.read_string("plugin_assembly")
    plugin_version = cur.read_string("plugin_version")
    return Header(
        api_version=api_version,
        hash=digest,
        signature=signature,
        data_offset=data_offset,
        data_length=data_length,
        plugin_assembly=plugin_assembly,
        plugin_version=plugin_version,
    )
