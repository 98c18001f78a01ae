from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .binreader import BufferLike
from .constants import FORMAT_VERSION, MANIFEST_NAME, MAX_ENTRIES, MAX_ENTRY_SIZE
from .errors import DecodeError, EncodingError
from .extract import extract_descriptor, lookup
from .header import Header
from .integrity import PublicKeyLike, check_hash, check_signature
from .parser import ArchiveIndex, EntryDescriptor, parse


class ObbyArchive:
    """Read-only view over an in-memory .obby archive.

    The buffer, header and index are built once in the constructor and never
    mutated afterwards, so one instance may be shared across threads.
    """

    def __init__(
        self,
        buffer: BufferLike,
        *,
        max_entries: int = MAX_ENTRIES,
        max_entry_size: int = MAX_ENTRY_SIZE,
        stacklevel: int = 3,
    ):
        # Own an immutable copy; bytes input is kept as-is
        self.buffer: bytes = buffer if isinstance(buffer, bytes) else bytes(buffer)
        self.max_entry_size = max_entry_size
        self.header: Header
        self.index: ArchiveIndex
        self.header, self.index = parse(
            self.buffer, max_entries=max_entries, stacklevel=stacklevel
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None

    def __len__(self) -> int:
        return len(self.index)

    def __contains__(self, name: object) -> bool:
        return name in self.index

    def __repr__(self) -> str:
        return (
            f"<ObbyArchive {self.header.plugin_assembly!r} {self.header.plugin_version!r}"
            f" entries={len(self.index)}>"
        )

    def list_entries(self) -> List[str]:
        return self.index.names()

    def entry(self, name: str) -> EntryDescriptor:
        return lookup(self.index, name)

    def extract_entry(self, name: str, *, strict: bool = False) -> bytes:
        return extract_descriptor(
            lookup(self.index, name), self.buffer, strict=strict, max_size=self.max_entry_size
        )

    def iter_entries(self, *, strict: bool = False) -> Iterator[Tuple[EntryDescriptor, bytes]]:
        for e in self.index:
            yield e, extract_descriptor(e, self.buffer, strict=strict, max_size=self.max_entry_size)

    def extract_plugin_json(self) -> str:
        data = self.extract_entry(MANIFEST_NAME)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(f"{MANIFEST_NAME} is not valid UTF-8: {exc}") from exc

    def load_plugin_manifest(self) -> Dict[str, Any]:
        text = self.extract_plugin_json()
        try:
            manifest = json.loads(text)
        except ValueError as exc:
            raise EncodingError(f"{MANIFEST_NAME} is not valid JSON: {exc}") from exc
        if not isinstance(manifest, dict):
            raise EncodingError(f"{MANIFEST_NAME} must contain a JSON object")
        return manifest

    def verify_hash(self) -> bool:
        return check_hash(self.header, self.buffer)

    def verify_signature(self, public_key: PublicKeyLike) -> bool:
        return check_signature(self.header, self.buffer, public_key)

    def check_entries(self) -> List[Tuple[EntryDescriptor, DecodeError]]:
        """Decode every entry in strict mode and collect the failures.

        A size mismatch counts as a failure here even though ``extract_entry``
        would only warn about it.
        """
        failures: List[Tuple[EntryDescriptor, DecodeError]] = []
        for e in self.index:
            try:
                extract_descriptor(e, self.buffer, strict=True, max_size=self.max_entry_size)
            except DecodeError as exc:
                failures.append((e, exc))
        return failures

    def verify(self) -> bool:
        """
        Checks the header hash and decodes every entry.

        Returns:
            True if all checks pass, False otherwise.
        """
        ok = self.verify_hash()
        return not self.check_entries() and ok


def open_archive(buffer: BufferLike, **kwargs) -> ObbyArchive:
    kwargs.setdefault("stacklevel", 4)
    return ObbyArchive(buffer, **kwargs)


def open_path(path: str, **kwargs) -> ObbyArchive:
    kwargs.setdefault("stacklevel", 4)
    with open(path, "rb") as fh:
        return ObbyArchive(fh.read(), **kwargs)


def list_entries(reader: ObbyArchive) -> List[str]:
    return reader.list_entries()


def extract_entry(reader: ObbyArchive, name: str, *, strict: bool = False) -> bytes:
    return reader.extract_entry(name, strict=strict)


def extract_plugin_json(source: Union[ObbyArchive, BufferLike]) -> str:
    """Return the manifest text of an archive or of a raw archive buffer."""
    reader = source if isinstance(source, ObbyArchive) else ObbyArchive(source, stacklevel=4)
    return reader.extract_plugin_json()


def load_plugin_manifest(source: Union[ObbyArchive, BufferLike]) -> Dict[str, Any]:
    reader = source if isinstance(source, ObbyArchive) else ObbyArchive(source, stacklevel=4)
    return reader.load_plugin_manifest()


def describe(reader: ObbyArchive) -> Dict[str, Optional[Any]]:
    h = reader.header
    return {
        "format_version": FORMAT_VERSION,
        "api_version": h.api_version,
        "plugin_assembly": h.plugin_assembly,
        "plugin_version": h.plugin_version,
        "hash": h.hash.hex(),
        "signed": h.is_signed,
        "data_length": h.data_length,
        "entries": len(reader.index),
        "stored_bytes": sum(e.stored_size for e in reader.index),
        "raw_bytes": sum(e.raw_size for e in reader.index),
    }
