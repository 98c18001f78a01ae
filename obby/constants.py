import enum


# Magic and version
OBBY_MAGIC = b"OBBY"  # 4 bytes
FORMAT_VERSION = 1

# Header field sizes
HASH_SIZE = 48        # SHA-384 digest of the data section
SIGNATURE_SIZE = 384  # RSA-3072 signature, present when is_signed != 0

# .NET BinaryWriter 7-bit length prefix: at most 5 groups for a 32-bit length
MAX_STRING_PREFIX_BYTES = 5

# Smallest possible table slot: 1-byte name length, 1-byte name, two i32 sizes
MIN_ENTRY_SLOT = 1 + 1 + 4 + 4

MANIFEST_NAME = "plugin.json"

# Safety bounds (overridable per call)
MAX_ENTRIES = 1_000_000
MAX_ENTRY_SIZE = 256 * 1024 * 1024  # 256 MiB decoded


class Compression(enum.IntEnum):
    """Per-entry storage flag: the payload is either stored verbatim or raw deflate."""

    RAW = 0
    DEFLATE = 1
