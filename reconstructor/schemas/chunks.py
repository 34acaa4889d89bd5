"""Pydantic schemas for chunk lookup responses."""

from pydantic import BaseModel, ConfigDict, Field


class ResolvedChunkResponse(BaseModel):
    """One fetchable chunk of a requested file."""
    model_config = ConfigDict(populate_by_name=True)

    resolved_chunk_location: str = Field(alias="resolvedChunkLocation")
    compressed_length: int = Field(alias="compressedLength", ge=0)
    encoding: str


class StatusResponse(BaseModel):
    """Response model for the root endpoint."""
    message: str
    status: str


class ReadyResponse(BaseModel):
    """Response model for readiness checks."""
    ready: bool
    manifest: str
    files: int = 0
