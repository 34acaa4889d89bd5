"""Chunk lookup API routes."""

from typing import List

from fastapi import APIRouter, Depends, Request

from reconstructor.schemas.chunks import ResolvedChunkResponse
from reconstructor.schemas.common import ErrorResponse
from reconstructor.services.reconstruct_service import ReconstructService

router = APIRouter(tags=["Chunks"])


def get_reconstruct_service(request: Request) -> ReconstructService:
    """Return the service bound to the running app."""
    return request.app.state.reconstruct_service


@router.get(
    "/{file_key:path}",
    response_model=List[ResolvedChunkResponse],
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def get_file_chunks(
    file_key: str,
    request: Request,
    service: ReconstructService = Depends(get_reconstruct_service)
):
    """
    List the chunks that make up a file.

    Parameters:
        - file_key: Single-segment file key, e.g. /video.mp4

    Returns:
        - Ordered list of chunks, each with resolvedChunkLocation,
          compressedLength and encoding. Fetch every location in order,
          decode it per its encoding and concatenate to rebuild the file.
          An empty list means the file is not known.

    Raises:
        - 400: Malformed key
        - 503: Manifest unavailable
    """
    resolved = service.resolve('/' + file_key, str(request.base_url))

    return [
        ResolvedChunkResponse(
            resolved_chunk_location=chunk.location,
            compressed_length=chunk.compressed_length,
            encoding=chunk.encoding,
        )
        for chunk in resolved
    ]
