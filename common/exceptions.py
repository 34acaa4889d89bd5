"""Custom exception classes shared by the chunker, reconstructor and client."""

from typing import Optional


class ChunkCDNError(Exception):
    """
    Base exception class for all chunkcdn errors.
    """
    pass


class ChunkingError(ChunkCDNError):
    """
    Base class for failures while chunking one source file.

    Carries the source path and, where known, the index of the chunk
    being processed when the failure happened.
    """

    def __init__(self, message: str, source_path: Optional[str] = None, chunk_index: Optional[int] = None):
        super().__init__(message)
        self.source_path = source_path
        self.chunk_index = chunk_index

    def __str__(self) -> str:
        message = super().__str__()
        context = []
        if self.source_path is not None:
            context.append(f"source={self.source_path}")
        if self.chunk_index is not None:
            context.append(f"chunk={self.chunk_index}")
        if context:
            return f"{message} [{' '.join(context)}]"
        return message


class SourceUnreadable(ChunkingError):
    """
    Raised when a source file cannot be opened or read.
    """
    pass


class ShortReadError(ChunkingError):
    """
    Raised when the source yields fewer bytes than its declared length.
    """

    def __init__(self, source_path: Optional[str], chunk_index: int, expected: int, actual: int):
        super().__init__(
            f"Short read: expected {expected} bytes, got {actual}",
            source_path=source_path,
            chunk_index=chunk_index,
        )
        self.expected = expected
        self.actual = actual


class ChunkWriteError(ChunkingError):
    """
    Raised when a chunk cannot be persisted to chunk storage.
    """
    pass


class CompressionError(ChunkingError):
    """
    Raised when compressing a chunk payload fails.
    """
    pass


class ManifestEncodeError(ChunkCDNError):
    """
    Raised when a manifest cannot be serialized.
    """
    pass


class ManifestDecodeError(ChunkCDNError):
    """
    Raised when manifest bytes are not a valid manifest.
    """
    pass


class ManifestUnavailable(ChunkCDNError):
    """
    Raised when the manifest store cannot be read.
    """
    pass


class InvalidKeyError(ChunkCDNError):
    """
    Raised when a request key is empty or names more than one path segment.
    """
    pass


class DuplicateFileKeyError(ChunkCDNError):
    """
    Raised when a file key is added to a manifest twice.
    """
    pass


class ChunkSizeMismatchError(ChunkCDNError):
    """
    Raised when a fetched chunk's size differs from its manifest length.
    """
    pass


class ChunkDecodeError(ChunkCDNError):
    """
    Raised when a fetched chunk cannot be decoded to its source bytes.
    """
    pass


class FileNotInManifestError(ChunkCDNError):
    """
    Raised by the client when a key resolves to no chunks.
    """
    pass
