"""
obby — reader for .obby plugin containers.

Features:

- Bounds-checked parse of the header (API version, SHA-384 hash, optional RSA
  signature, plugin assembly/version) and the entry table, without touching
  entry payloads.
- On-demand extraction of entries stored raw or as raw deflate streams, with
  declared sizes checked against the decoded output.
- Manifest accessor for the conventional ``plugin.json`` entry.
- Hash and signature verification via PyCryptodomex.
- Listing, info, extraction and verification via CLI.

The archive is read into memory once; the reader is an immutable view and can
be shared between threads.
"""

__version__ = "0.1"

from .constants import Compression, MANIFEST_NAME
from .errors import (
    ObbyError,
    FormatError,
    BadMagic,
    OutOfBounds,
    TableCorrupt,
    NotFound,
    EntryNotFound,
    DecodeError,
    EncodingError,
    SignatureError,
    ObbyWarning,
    DuplicateEntryWarning,
    EntrySizeWarning,
)
from .parser import ArchiveIndex, EntryDescriptor, parse
from .reader import (
    ObbyArchive,
    open_archive,
    open_path,
    list_entries,
    extract_entry,
    extract_plugin_json,
    load_plugin_manifest,
)

__all__ = [
    "Compression",
    "MANIFEST_NAME",
    "ObbyError",
    "FormatError",
    "BadMagic",
    "OutOfBounds",
    "TableCorrupt",
    "NotFound",
    "EntryNotFound",
    "DecodeError",
    "EncodingError",
    "SignatureError",
    "ObbyWarning",
    "DuplicateEntryWarning",
    "EntrySizeWarning",
    "ArchiveIndex",
    "EntryDescriptor",
    "parse",
    "ObbyArchive",
    "open_archive",
    "open_path",
    "list_entries",
    "extract_entry",
    "extract_plugin_json",
    "load_plugin_manifest",
]
