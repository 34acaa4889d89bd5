"""Run-scoped shared state for one chunking run: chunk-name counter and manifest."""

import threading
from typing import Iterable

from common.constants import CHUNK_FILE_SUFFIX, CHUNK_NAME_PREFIX
from common.types import ChunkDescriptor, Manifest


class ChunkingRunContext:
    """
    State shared by every worker of one chunking run.

    Chunk names come from a monotonic counter so they are unique across
    files processed in parallel and reproducible between runs over the same
    input order. The manifest only ever receives complete chunk lists.
    """

    def __init__(self, name_prefix: str = CHUNK_NAME_PREFIX, name_suffix: str = CHUNK_FILE_SUFFIX):
        self._lock = threading.Lock()
        self._next_sequence = 0
        self._name_prefix = name_prefix
        self._name_suffix = name_suffix
        self._manifest = Manifest()

    def next_chunk_name(self) -> str:
        """Allocate the next unused chunk name."""
        with self._lock:
            sequence = self._next_sequence
            self._next_sequence += 1
        return f"{self._name_prefix}{sequence:08d}{self._name_suffix}"

    def publish(self, file_key: str, descriptors: Iterable[ChunkDescriptor]) -> None:
        """
        Record a file's finished chunk list in the run manifest.

        Raises:
            DuplicateFileKeyError: If the file key was already published
        """
        descriptors = tuple(descriptors)
        with self._lock:
            self._manifest.add(file_key, descriptors)

    def is_published(self, file_key: str) -> bool:
        with self._lock:
            return file_key in self._manifest

    @property
    def chunks_allocated(self) -> int:
        with self._lock:
            return self._next_sequence

    def snapshot(self) -> Manifest:
        """Return a copy of the manifest as published so far."""
        with self._lock:
            return Manifest(entries=dict(self._manifest.entries))
