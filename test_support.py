from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from typing import List, Optional

from Cryptodome.Hash import SHA384
from Cryptodome.Signature import pkcs1_15


@dataclass
class FixtureEntry:
    name: str
    data: bytes
    compress: bool = False
    # Overrides for building damaged archives
    raw_size: Optional[int] = None
    payload: Optional[bytes] = None
    stored_size: Optional[int] = None


def encode_string(s) -> bytes:
    raw = s if isinstance(s, bytes) else s.encode("utf-8")
    n = len(raw)
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            break
    return bytes(out) + raw


def deflate_raw(data: bytes) -> bytes:
    c = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
    return c.compress(data) + c.flush()


def build_data_section(
    entries: List[FixtureEntry],
    *,
    assembly: str = "TestPlugin.dll",
    version: str = "1.0.0",
    entry_count: Optional[int] = None,
) -> bytes:
    table = bytearray()
    payloads = bytearray()
    for e in entries:
        payload = e.payload
        if payload is None:
            payload = deflate_raw(e.data) if e.compress else e.data
        raw_size = len(e.data) if e.raw_size is None else e.raw_size
        stored_size = len(payload) if e.stored_size is None else e.stored_size
        if e.compress and e.payload is None:
            assert stored_size != raw_size, "fixture would be read back as a stored entry"
        table += encode_string(e.name) + struct.pack("<ii", raw_size, stored_size)
        payloads += payload
    count = len(entries) if entry_count is None else entry_count
    return encode_string(assembly) + encode_string(version) + struct.pack("<i", count) + bytes(table) + bytes(payloads)


def build_obby(
    entries: List[FixtureEntry],
    *,
    api_version: str = "1.2.0",
    assembly: str = "TestPlugin.dll",
    version: str = "1.0.0",
    private_key=None,
    entry_count: Optional[int] = None,
    data_length: Optional[int] = None,
) -> bytes:
    data = build_data_section(entries, assembly=assembly, version=version, entry_count=entry_count)
    digest = SHA384.new(data)
    out = bytearray(b"OBBY")
    out += encode_string(api_version)
    out += digest.digest()
    if private_key is not None:
        out += b"\x01" + pkcs1_15.new(private_key).sign(digest)
    else:
        out += b"\x00"
    out += struct.pack("<i", len(data) if data_length is None else data_length)
    out += data
    return bytes(out)


PLUGIN_JSON = (
    b'{\n  "id": "test-plugin",\n  "name": "Test Plugin",\n  "version": "1.0.0",\n'
    b'  "description": "A test plugin"\n}\n'
)


def icon_bytes(size: int = 1024) -> bytes:
    # Compressible but not trivially uniform
    return bytes((i * 7) % 31 for i in range(size))


SCENARIO_MANIFEST = b'{"id":"test-plugin","name":"Test Plugin"}\n'  # 42 bytes


def sample_entries() -> List[FixtureEntry]:
    return [
        FixtureEntry("plugin.json", SCENARIO_MANIFEST),
        FixtureEntry("icon.png", icon_bytes(1024), compress=True),
    ]
