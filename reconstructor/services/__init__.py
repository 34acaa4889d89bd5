"""Service layer for chunk lookup logic."""

from reconstructor.services.reconstruct_service import ReconstructService, ResolvedChunk

__all__ = [
    "ReconstructService",
    "ResolvedChunk",
]
