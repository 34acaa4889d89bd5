"""Resolves a requested file key to the ordered, fetchable locations of its chunks."""

from dataclasses import dataclass
from typing import List, Tuple

from common.constants import CHUNK_NAMESPACE
from common.exceptions import InvalidKeyError
from common.logging_config import get_logger
from common.types import ChunkDescriptor
from reconstructor.manifest_cache import ManifestCache

logger = get_logger(__name__)

SEPARATORS = ('/', '\\')


@dataclass(frozen=True)
class ResolvedChunk:
    """
    A chunk descriptor with its name replaced by a full fetch location.
    """
    location: str
    compressed_length: int
    encoding: str


def validate_key(request_path: str) -> str:
    """
    Turn a request path into a manifest key.

    One leading '/' is stripped. What remains must be a single,
    non-empty path segment.

    Args:
        request_path: URL path such as "/video.mp4"

    Returns:
        The manifest key, e.g. "video.mp4"

    Raises:
        InvalidKeyError: If the path is empty or names more than one segment
    """
    if not request_path:
        raise InvalidKeyError("Empty request path")

    key = request_path[1:] if request_path.startswith('/') else request_path

    if not key:
        raise InvalidKeyError(f"path \"{request_path}\" names no file")
    if any(sep in key for sep in SEPARATORS):
        raise InvalidKeyError(f"path \"{request_path}\" must name a single path segment")
    if key in ('.', '..'):
        raise InvalidKeyError(f"path \"{request_path}\" is not a file name")
    return key


def resolve_location(base_url: str, chunk_name: str) -> str:
    """Full fetch location of a chunk: <base_url>/<chunk namespace>/<name>."""
    return f"{base_url.rstrip('/')}/{CHUNK_NAMESPACE}/{chunk_name}"


class ReconstructService:
    """
    Answers "which chunks make up file X, and where do I fetch them".

    The service never fetches or concatenates chunk bytes; reassembly is
    left to the requester so responses stay small.
    """

    def __init__(self, manifest_cache: ManifestCache, chunk_base_url: str = ""):
        """
        Args:
            manifest_cache: Shared manifest cache
            chunk_base_url: Base URL for chunk locations; callers pass the
                request's base URL when this is empty
        """
        self.manifest_cache = manifest_cache
        self.chunk_base_url = chunk_base_url

    def lookup(self, request_path: str) -> Tuple[ChunkDescriptor, ...]:
        """
        Ordered chunk descriptors for a request path.

        A key with no manifest entry yields an empty tuple.

        Raises:
            InvalidKeyError: If the path is malformed
            ManifestUnavailable: If the manifest cannot be loaded
        """
        key = validate_key(request_path)
        manifest = self.manifest_cache.get()
        return manifest.get(key)

    def resolve(self, request_path: str, request_base_url: str = "") -> List[ResolvedChunk]:
        """
        Ordered, fully-qualified chunk locations for a request path.

        Args:
            request_path: URL path such as "/video.mp4"
            request_base_url: Used when no chunk base URL is configured

        Returns:
            One ResolvedChunk per descriptor, in manifest order
        """
        descriptors = self.lookup(request_path)
        base_url = self.chunk_base_url or request_base_url

        resolved = [
            ResolvedChunk(
                location=resolve_location(base_url, d.name),
                compressed_length=d.compressed_length,
                encoding=d.encoding,
            )
            for d in descriptors
        ]
        logger.debug(f"Resolved {request_path} to {len(resolved)} chunks")
        return resolved
