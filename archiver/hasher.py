"""Streaming content fingerprints used as the deduplication key."""
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO

from core.settings import DEFAULT_CHUNK_SIZE

FINGERPRINT_HEX_LENGTH = 32


def new_digest():
    return hashlib.md5(usedforsecurity=False)


def fingerprint_stream(stream: BinaryIO, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Return the hex MD5 of everything left in *stream*.

    The stream is consumed in chunks of at most *chunk_size* bytes, so memory
    use does not depend on the size of the content. Read errors propagate.
    """

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    digest = new_digest()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        digest.update(chunk)
    return digest.hexdigest()


def fingerprint_path(path: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    with Path(path).open("rb") as handle:
        return fingerprint_stream(handle, chunk_size=chunk_size)


def fingerprint_bytes(data: bytes) -> str:
    digest = new_digest()
    digest.update(data)
    return digest.hexdigest()


def is_fingerprint(value: object) -> bool:
    if not isinstance(value, str) or len(value) != FINGERPRINT_HEX_LENGTH:
        return False
    return all(char in "0123456789abcdef" for char in value)


__all__ = [
    "FINGERPRINT_HEX_LENGTH",
    "fingerprint_bytes",
    "fingerprint_path",
    "fingerprint_stream",
    "is_fingerprint",
    "new_digest",
]
