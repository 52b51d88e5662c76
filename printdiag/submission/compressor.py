"""
Gzip compression of artifact bytes.

Output is a standard RFC 1952 stream. The header timestamp is pinned to zero
so the same input and level always produce the same bytes.
"""

import gzip
import zlib

from .exceptions import CompressionError

DEFAULT_COMPRESSION_LEVEL = 6


def compress(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Compress `data` in one shot"""
    try:
        return gzip.compress(bytes(data), compresslevel=level, mtime=0)
    except (TypeError, ValueError, zlib.error) as e:
        raise CompressionError(f"Failed to compress artifact: {e}") from e


def decompress(data: bytes) -> bytes:
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CompressionError(f"Failed to decompress payload: {e}") from e
