from __future__ import annotations

"""
Bounds-checked little-endian cursor over an in-memory archive buffer.

All reads go through a read-only memoryview, so slices returned by
``read_bytes`` reference the original buffer instead of copying it. Any read
past the end raises ``OutOfBounds``; the cursor never wraps or clamps.

Strings use the .NET ``BinaryWriter`` framing: a 7-bit variable-length
unsigned length prefix (low group first, high bit set on every byte but the
last) followed by UTF-8 bytes.
"""

import struct
from typing import Optional, Union

from .constants import MAX_STRING_PREFIX_BYTES
from .errors import OutOfBounds, TableCorrupt


_I32 = struct.Struct("<i")

BufferLike = Union[bytes, bytearray, memoryview]


class Cursor:
    def __init__(self, buffer: BufferLike, pos: int = 0):
        self.view = memoryview(buffer).toreadonly()
        self.pos = pos

    def __len__(self) -> int:
        return len(self.view)

    def tell(self) -> int:
        return self.pos

    def remaining(self) -> int:
        return len(self.view) - self.pos

    def _require(self, n: int, what: str, entry_index: Optional[int]) -> None:
        if n < 0 or self.pos + n > len(self.view):
            raise OutOfBounds(
                f"{what}: need {n} bytes at offset {self.pos}, buffer has {len(self.view)}",
                entry_index,
            )

    def read_bytes(self, n: int, what: str = "bytes", entry_index: Optional[int] = None) -> memoryview:
        self._require(n, what, entry_index)
        out = self.view[self.pos : self.pos + n]
        self.pos += n
        return out

    def read_u8(self, what: str = "u8", entry_index: Optional[int] = None) -> int:
        self._require(1, what, entry_index)
        b = self.view[self.pos]
        self.pos += 1
        return b

    def read_i32(self, what: str = "i32", entry_index: Optional[int] = None) -> int:
        self._require(_I32.size, what, entry_index)
        (v,) = _I32.unpack_from(self.view, self.pos)
        self.pos += _I32.size
        return v

    def read_length_prefix(self, what: str = "string", entry_index: Optional[int] = None) -> int:
        result = 0
        for step in range(MAX_STRING_PREFIX_BYTES):
            b = self.read_u8(f"{what} length", entry_index)
            result |= (b & 0x7F) << (7 * step)
            if not (b & 0x80):
                return result
        raise TableCorrupt(f"{what}: length prefix longer than {MAX_STRING_PREFIX_BYTES} bytes", entry_index)

    def read_raw_string(self, what: str = "string", entry_index: Optional[int] = None) -> bytes:
        n = self.read_length_prefix(what, entry_index)
        return bytes(self.read_bytes(n, what, entry_index))

    def read_string(self, what: str = "string", entry_index: Optional[int] = None, *, strict: bool = False) -> str:
        raw = self.read_raw_string(what, entry_index)
        if not strict:
            return raw.decode("utf-8", errors="replace")
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TableCorrupt(f"{what}: invalid UTF-8 ({exc.reason})", entry_index) from exc
