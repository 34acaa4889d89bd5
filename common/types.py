"""Shared data type definitions (ChunkDescriptor, Manifest)."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Tuple

from common.constants import ENCODING_GZIP
from common.exceptions import DuplicateFileKeyError


@dataclass(frozen=True)
class ChunkDescriptor:
    """
    Metadata for a single stored chunk.
    """
    name: str
    compressed_length: int
    encoding: str = ENCODING_GZIP


@dataclass
class Manifest:
    """
    Mapping of file key to the ordered chunks holding that file's bytes.

    Chunk order is the order the byte ranges were read from the source,
    so decoding and concatenating the chunks in order yields the file.
    """
    entries: Mapping[str, Tuple[ChunkDescriptor, ...]] = field(default_factory=dict)

    def add(self, file_key: str, descriptors: Iterable[ChunkDescriptor]) -> None:
        """
        Record the chunk list for a file.

        Raises:
            DuplicateFileKeyError: If the file key is already present
        """
        if file_key in self.entries:
            raise DuplicateFileKeyError(f"File key already in manifest: {file_key}")
        self.entries[file_key] = tuple(descriptors)

    def get(self, file_key: str) -> Tuple[ChunkDescriptor, ...]:
        return self.entries.get(file_key, ())

    def keys(self) -> list[str]:
        return sorted(self.entries)

    def frozen(self) -> "Manifest":
        """Return a read-only copy for sharing between request handlers."""
        return Manifest(entries=MappingProxyType(dict(self.entries)))

    def total_chunks(self) -> int:
        return sum(len(chunks) for chunks in self.entries.values())

    def __contains__(self, file_key: object) -> bool:
        return file_key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Manifest):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)


def build_manifest(entries: Dict[str, Iterable[ChunkDescriptor]]) -> Manifest:
    """Build a Manifest from a plain mapping of key to descriptors."""
    manifest = Manifest()
    for file_key, descriptors in entries.items():
        manifest.add(file_key, descriptors)
    return manifest
