# prooflog/core/digest.py
"""
SHA-256 digest engine. Hashing runs in the default executor so callers on
the event loop are suspended, not blocked.
"""

import asyncio
import hashlib
from pathlib import Path
from typing import Tuple, Union

from prooflog.core.errors import DigestUnavailable

ALGORITHM = "sha256"
CHUNK_SIZE = 1024 * 1024


def _new_hasher():
    try:
        return hashlib.new(ALGORITHM)
    except ValueError as e:
        raise DigestUnavailable(f"{ALGORITHM} is not available: {e}") from e


def sha256_hex(data: bytes) -> str:
    """Synchronous core: lowercase hex SHA-256 of the exact bytes."""
    h = _new_hasher()
    h.update(data)
    return h.hexdigest()


def _hash_file(path: Path) -> Tuple[str, int]:
    h = _new_hasher()
    size = 0
    with open(path, "rb") as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            h.update(chunk)
            size += len(chunk)
    return h.hexdigest(), size


async def digest(data: bytes) -> str:
    """Lowercase hex SHA-256 of `data` (may be empty)."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, sha256_hex, bytes(data))


async def digest_file(path: Union[str, Path]) -> Tuple[str, int]:
    """
    Stream a file through SHA-256.
    Returns (hex digest, size in bytes). OSError from reading propagates.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _hash_file, Path(path))
