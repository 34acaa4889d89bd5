"""Manages physical chunk files on disk: write-once storage addressed by chunk name."""

import shutil
from pathlib import Path
from typing import Union

from common.constants import CHUNK_FILE_SUFFIX
from common.exceptions import ChunkWriteError
from common.logging_config import get_logger

logger = get_logger(__name__)


class ChunkStorage:
    """
    Directory of chunk objects, one file per chunk name.

    Chunks are write-once: writing a name that already exists fails
    instead of overwriting it.
    """

    def __init__(self, chunks_dir: Union[str, Path]):
        """
        Initialize chunk storage.

        Args:
            chunks_dir: Directory holding chunk files (served under the chunk namespace)
        """
        self.chunks_dir = Path(chunks_dir)

    def ensure_directory(self) -> None:
        """Ensure chunks directory exists."""
        self.chunks_dir.mkdir(parents=True, exist_ok=True)

    def reset(self) -> None:
        """Remove any previous chunks directory and create an empty one."""
        if self.chunks_dir.is_dir():
            shutil.rmtree(self.chunks_dir)
            logger.info(f"Removed previous chunk directory {self.chunks_dir}")
        self.chunks_dir.mkdir(parents=True)
        logger.info(f"mkdir {self.chunks_dir}")

    def get_chunk_path(self, name: str) -> Path:
        """
        Get file path for a chunk.

        Args:
            name: Chunk name as recorded in the manifest

        Returns:
            Path object for chunk file
        """
        return self.chunks_dir / name

    def write_chunk(self, name: str, data: bytes) -> int:
        """
        Write chunk data to disk.

        Args:
            name: Chunk name, must not already exist
            data: Bytes to store

        Returns:
            Stored size in bytes, as reported by the filesystem

        Raises:
            ChunkWriteError: If the chunk exists or the write fails
        """
        filepath = self.get_chunk_path(name)
        try:
            self.ensure_directory()
            with open(filepath, 'xb') as f:
                f.write(data)
            stored = filepath.stat().st_size
        except FileExistsError as e:
            raise ChunkWriteError(f"Chunk {name} already exists") from e
        except OSError as e:
            raise ChunkWriteError(f"Cannot write chunk {name}: {e}") from e

        if stored != len(data):
            raise ChunkWriteError(f"Chunk {name} stored {stored} of {len(data)} bytes")
        return stored

    def list_chunks(self) -> list[str]:
        """
        List all chunk names in storage directory.

        Returns:
            Sorted chunk names
        """
        if not self.chunks_dir.exists():
            return []
        return sorted(p.name for p in self.chunks_dir.glob(f"*{CHUNK_FILE_SUFFIX}"))

