"""Client-side reassembly: decode chunks and concatenate them into the original file."""

import gzip
import zlib
from pathlib import Path
from typing import BinaryIO, Iterable, Tuple, Union

from common.constants import ENCODING_GZIP, ENCODING_IDENTITY
from common.exceptions import ChunkDecodeError, ChunkSizeMismatchError
from common.types import ChunkDescriptor


def verify_chunk_length(data: bytes, expected: int, name: str = "") -> None:
    """
    Check a fetched chunk against its manifest length.

    Raises:
        ChunkSizeMismatchError: If the sizes differ
    """
    if len(data) != expected:
        raise ChunkSizeMismatchError(f"Chunk {name} is {len(data)} bytes, expected {expected}")


def decode_chunk(data: bytes, encoding: str) -> bytes:
    """
    Recover a chunk's source bytes from its stored form.

    Raises:
        ChunkDecodeError: If the encoding is unknown or a gzip chunk is corrupt
    """
    if encoding == ENCODING_IDENTITY:
        return data
    if encoding == ENCODING_GZIP:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise ChunkDecodeError(f"Chunk is not valid gzip: {e}") from e
    raise ChunkDecodeError(f"Unknown chunk encoding: {encoding!r}")


def reassemble(parts: Iterable[Tuple[bytes, int, str]], out: BinaryIO) -> int:
    """
    Verify, decode and write chunks in order.

    Args:
        parts: (stored bytes, expected stored length, encoding) per chunk, in manifest order
        out: Writable binary stream

    Returns:
        Number of decoded bytes written
    """
    written = 0
    for index, (data, expected, encoding) in enumerate(parts):
        verify_chunk_length(data, expected, name=f"#{index}")
        payload = decode_chunk(data, encoding)
        out.write(payload)
        written += len(payload)
    return written


def reassemble_from_directory(
    chunk_dir: Union[str, Path],
    descriptors: Iterable[ChunkDescriptor],
    out: BinaryIO,
) -> int:
    """
    Rebuild a file from chunk files on local disk.

    Returns:
        Number of decoded bytes written
    """
    chunk_dir = Path(chunk_dir)
    parts = (
        ((chunk_dir / d.name).read_bytes(), d.compressed_length, d.encoding)
        for d in descriptors
    )
    return reassemble(parts, out)
