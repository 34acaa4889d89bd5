"""Pydantic schemas for API responses."""

from reconstructor.schemas.chunks import ReadyResponse, ResolvedChunkResponse, StatusResponse
from reconstructor.schemas.common import ErrorResponse

__all__ = [
    "ResolvedChunkResponse",
    "StatusResponse",
    "ReadyResponse",
    "ErrorResponse",
]
