from __future__ import annotations

"""Header hash and signature checks backed by PyCryptodomex.

The header carries a SHA-384 digest of the data section (everything after the
``data_length`` field, ``data_length`` bytes long). Signed archives also carry
an RSA-3072 PKCS#1 v1.5 signature over that same digest.
"""

import hmac
from typing import Union

try:  # pragma: no cover - optional dependency at runtime
    from Cryptodome.Hash import SHA384  # type: ignore
    from Cryptodome.PublicKey import RSA  # type: ignore
    from Cryptodome.Signature import pkcs1_15  # type: ignore
    _HAS_CRYPTODOME = True
except ImportError:  # pragma: no cover - fallback
    SHA384 = None  # type: ignore
    RSA = None  # type: ignore
    pkcs1_15 = None  # type: ignore
    _HAS_CRYPTODOME = False

from .binreader import BufferLike
from .errors import SignatureError
from .header import Header


PublicKeyLike = Union[bytes, str, "RSA.RsaKey"]


def _require_crypto() -> None:
    if not _HAS_CRYPTODOME:
        raise RuntimeError("PyCryptodomex is required for hash and signature checks")


def _data_hash(header: Header, buffer: BufferLike):
    _require_crypto()
    view = memoryview(buffer)[header.data_offset : header.data_end]
    return SHA384.new(view)


def data_digest(header: Header, buffer: BufferLike) -> bytes:
    return _data_hash(header, buffer).digest()


def check_hash(header: Header, buffer: BufferLike) -> bool:
    return hmac.compare_digest(data_digest(header, buffer), header.hash)


def load_public_key(key: PublicKeyLike):
    _require_crypto()
    if isinstance(key, RSA.RsaKey):
        return key
    try:
        return RSA.import_key(key)
    except (ValueError, IndexError, TypeError) as exc:
        raise SignatureError(f"Cannot load RSA public key: {exc}") from exc


def check_signature(header: Header, buffer: BufferLike, public_key: PublicKeyLike) -> bool:
    """Verify the header signature against ``public_key``.

    Returns False when the signature does not match; raises
    ``SignatureError`` when the archive is unsigned or the key is unusable.
    """
    if header.signature is None:
        raise SignatureError("Archive is not signed")
    key = load_public_key(public_key)
    try:
        pkcs1_15.new(key).verify(_data_hash(header, buffer), header.signature)
    except (ValueError, TypeError):
        return False
    return True
