from __future__ import annotations

import zlib
from typing import Callable, Dict, Tuple

from .constants import Compression, MAX_ENTRY_SIZE


# Payloads are raw deflate streams: no zlib header, no checksum trailer
_RAW_DEFLATE_WBITS = -zlib.MAX_WBITS


class CodecError(Exception):
    """Raised by decoders; callers attach the entry name."""


def _decode_raw(data: memoryview, raw_size: int, max_size: int) -> bytes:
    return bytes(data)


def _decode_deflate(data: memoryview, raw_size: int, max_size: int) -> bytes:
    d = zlib.decompressobj(_RAW_DEFLATE_WBITS)
    try:
        out = d.decompress(data, max_size + 1)
        if not d.unconsumed_tail:
            # raw_size only sizes the flush buffer; never trusted beyond max_size
            out += d.flush(max(1, min(raw_size, max_size)))
    except zlib.error as exc:
        raise CodecError(f"deflate stream is corrupt: {exc}") from exc
    if len(out) > max_size or d.unconsumed_tail:
        raise CodecError(f"decoded size exceeds safety bound of {max_size} bytes")
    if not d.eof:
        raise CodecError("deflate stream is truncated (no end-of-stream marker)")
    if d.unused_data:
        raise CodecError(f"{len(d.unused_data)} bytes of trailing data after deflate stream")
    return out


_DECODERS: Dict[Compression, Callable[[memoryview, int, int], bytes]] = {
    Compression.RAW: _decode_raw,
    Compression.DEFLATE: _decode_deflate,
}


def decode(compression: Compression, data: memoryview, raw_size: int, max_size: int = MAX_ENTRY_SIZE) -> Tuple[bytes, bool]:
    """Decode a stored payload.

    Returns ``(data, size_ok)`` where ``size_ok`` tells whether the decoded
    length matches the declared ``raw_size``.
    """
    try:
        decoder = _DECODERS[compression]
    except KeyError:
        raise CodecError(f"unsupported compression {compression!r}") from None
    out = decoder(data, raw_size, max_size)
    return out, len(out) == raw_size
