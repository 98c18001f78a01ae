from __future__ import annotations

from typing import Optional


class ObbyError(Exception):
    """Base class for obby-specific errors."""


# Structural errors (archive unusable)
class FormatError(ObbyError):
    def __init__(self, message: str, entry_index: Optional[int] = None):
        if entry_index is not None:
            message = f"entry #{entry_index}: {message}"
        super().__init__(message)
        self.entry_index = entry_index


class BadMagic(FormatError):
    pass


class OutOfBounds(FormatError):
    pass


class TableCorrupt(FormatError):
    pass


# Lookup
class NotFound(ObbyError, KeyError):
    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class EntryNotFound(NotFound):
    def __init__(self, name: str):
        super().__init__(f"Entry '{name}' not found in archive")
        self.name = name


# Per-entry payload errors
class DecodeError(ObbyError):
    def __init__(self, message: str, name: Optional[str] = None):
        if name is not None:
            message = f"{name}: {message}"
        super().__init__(message)
        self.name = name


class EncodingError(ObbyError):
    pass


class SignatureError(ObbyError):
    pass


# Non-fatal integrity reports
class ObbyWarning(UserWarning):
    pass


class DuplicateEntryWarning(ObbyWarning):
    pass


class EntrySizeWarning(ObbyWarning):
    pass
