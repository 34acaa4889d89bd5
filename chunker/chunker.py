"""
File Chunker

Splits one source file into ordered chunks of at most max_chunk_payload
source bytes, compresses each chunk on its own and stores it under a
run-unique name.

Chunk boundaries are computed from the source length alone, before any
compression, so the number of chunks for a file of N bytes is always
ceil(N / max_chunk_payload). The last chunk holds the remainder, or a full
chunk when N divides evenly. A zero-length file has no chunks.

Each chunk is compressed after splitting so it can be fetched and decoded
independently of its neighbours.
"""

from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from chunker.chunk_storage import ChunkStorage
from chunker.compression import compress_chunk
from chunker.run_context import ChunkingRunContext
from common.constants import GZIP_BEST_COMPRESSION, MAX_CHUNK_PAYLOAD_BYTES
from common.exceptions import ChunkingError, ShortReadError, SourceUnreadable
from common.logging_config import get_logger
from common.types import ChunkDescriptor

logger = get_logger(__name__)


def get_chunk_count(file_size: int, max_chunk_payload: int) -> int:
    """Calculate number of chunks for a file of given size."""
    if max_chunk_payload <= 0:
        raise ValueError(f"max_chunk_payload must be positive, got {max_chunk_payload}")
    if file_size < 0:
        raise ValueError(f"file_size must not be negative, got {file_size}")
    return (file_size + max_chunk_payload - 1) // max_chunk_payload


def chunk_plan(file_size: int, max_chunk_payload: int) -> List[int]:
    """
    Source byte counts of each chunk, in read order.

    Example:
        chunk_plan(70_000_000, 30_000_000) == [30_000_000, 30_000_000, 10_000_000]
    """
    count = get_chunk_count(file_size, max_chunk_payload)
    plan = [max_chunk_payload] * count
    remainder = file_size % max_chunk_payload
    if count and remainder:
        plan[-1] = remainder
    return plan


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read up to size bytes, looping over short reads until EOF."""
    parts = []
    remaining = size
    while remaining > 0:
        piece = stream.read(remaining)
        if not piece:
            break
        parts.append(piece)
        remaining -= len(piece)
    return b"".join(parts)


class FileChunker:
    """
    Splits files into bounded chunks and publishes their descriptors.

    One FileChunker may be shared by several worker threads of a run: all
    shared state lives in the ChunkingRunContext, and each call to
    chunk_file owns its own source handle.
    """

    def __init__(
        self,
        storage: ChunkStorage,
        context: ChunkingRunContext,
        max_chunk_payload: int = MAX_CHUNK_PAYLOAD_BYTES,
        compression_level: int = GZIP_BEST_COMPRESSION,
    ):
        if max_chunk_payload <= 0:
            raise ValueError(f"max_chunk_payload must be positive, got {max_chunk_payload}")
        self.storage = storage
        self.context = context
        self.max_chunk_payload = max_chunk_payload
        self.compression_level = compression_level

    def chunk_file(self, source_path: Union[str, Path], file_key: str, file_size: Optional[int] = None) -> List[ChunkDescriptor]:
        """
        Chunk a file on disk and publish it under file_key.

        Args:
            source_path: File to read
            file_key: Manifest key for the file
            file_size: Expected length; read from the filesystem when omitted

        Returns:
            Ordered chunk descriptors

        Raises:
            SourceUnreadable: If the file cannot be opened or read
            ShortReadError: If the file is shorter than file_size
            ChunkWriteError: If a chunk cannot be stored
            CompressionError: If a chunk cannot be compressed
        """
        source_path = Path(source_path)
        try:
            with open(source_path, 'rb') as stream:
                if file_size is None:
                    file_size = source_path.stat().st_size
                return self.chunk_stream(stream, file_key, file_size, source_label=str(source_path))
        except ChunkingError:
            raise
        except OSError as e:
            raise SourceUnreadable(f"Cannot read source: {e}", source_path=str(source_path)) from e

    def chunk_stream(self, stream: BinaryIO, file_key: str, file_size: int, source_label: Optional[str] = None) -> List[ChunkDescriptor]:
        """
        Chunk an already open byte stream of known length.

        The stream is read strictly forward, one chunk at a time. The
        descriptors are published only after every chunk is stored.
        """
        source_label = source_label or file_key
        plan = chunk_plan(file_size, self.max_chunk_payload)
        descriptors = []

        logger.info(f"{source_label} : {file_size} bytes in {len(plan)} chunks")

        for chunk_index, expected in enumerate(plan):
            try:
                data = _read_exact(stream, expected)
            except OSError as e:
                raise SourceUnreadable(f"Read failed: {e}", source_path=source_label, chunk_index=chunk_index) from e

            if len(data) != expected:
                raise ShortReadError(source_label, chunk_index, expected, len(data))

            descriptors.append(self._store_chunk(data, source_label, chunk_index))

        self.context.publish(file_key, descriptors)
        return descriptors

    def _store_chunk(self, data: bytes, source_label: str, chunk_index: int) -> ChunkDescriptor:
        try:
            outcome = compress_chunk(data, self.compression_level)
            name = self.context.next_chunk_name()
            stored_length = self.storage.write_chunk(name, outcome.payload)
        except ChunkingError as e:
            e.source_path = e.source_path or source_label
            if e.chunk_index is None:
                e.chunk_index = chunk_index
            raise

        logger.info(f"{source_label} : chunk {chunk_index} = {self.storage.get_chunk_path(name)}")
        logger.debug(
            f"{source_label} : chunk {chunk_index} raw={outcome.raw_length} "
            f"stored={stored_length} encoding={outcome.encoding}"
        )
        return ChunkDescriptor(name=name, compressed_length=stored_length, encoding=outcome.encoding)
