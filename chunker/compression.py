"""Per-chunk compression policy with fallback to raw storage."""

import gzip
import zlib
from dataclasses import dataclass

from common.constants import ENCODING_GZIP, ENCODING_IDENTITY, GZIP_BEST_COMPRESSION
from common.exceptions import CompressionError


@dataclass(frozen=True)
class CompressionOutcome:
    """
    Result of the compression decision for one chunk payload.
    """
    payload: bytes
    encoding: str
    raw_length: int

    @property
    def stored_length(self) -> int:
        return len(self.payload)

    @property
    def compressed(self) -> bool:
        return self.encoding == ENCODING_GZIP


def gzip_payload(data: bytes, level: int = GZIP_BEST_COMPRESSION) -> bytes:
    """
    Gzip a payload with a fixed header timestamp so output is reproducible.

    Raises:
        CompressionError: If compression fails
    """
    try:
        return gzip.compress(data, compresslevel=level, mtime=0)
    except (OSError, ValueError, zlib.error) as e:
        raise CompressionError(f"gzip -{level} failed: {e}") from e


def compress_chunk(data: bytes, level: int = GZIP_BEST_COMPRESSION) -> CompressionOutcome:
    """
    Compress a chunk payload, keeping the raw bytes when gzip does not help.

    The compressed form is kept only when it is strictly smaller than the
    raw payload. Otherwise the raw bytes are stored as-is and tagged with
    the identity encoding.

    Args:
        data: Raw chunk payload
        level: gzip compression level

    Returns:
        CompressionOutcome describing the bytes to store
    """
    compressed = gzip_payload(data, level)
    if len(compressed) < len(data):
        return CompressionOutcome(payload=compressed, encoding=ENCODING_GZIP, raw_length=len(data))
    return CompressionOutcome(payload=bytes(data), encoding=ENCODING_IDENTITY, raw_length=len(data))
