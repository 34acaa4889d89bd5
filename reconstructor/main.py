"""Entry point for the Reconstructor service."""

import time
import uuid
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from common.constants import CHUNK_NAMESPACE
from common.exceptions import (
    ChunkCDNError,
    InvalidKeyError,
    ManifestDecodeError,
    ManifestUnavailable,
)
from common.logging_config import setup_logging
from common.manifest_codec import read_manifest
from reconstructor import config
from reconstructor.manifest_cache import ManifestCache
from reconstructor.routes.chunk_routes import router as chunk_router
from reconstructor.schemas.chunks import ReadyResponse, StatusResponse
from reconstructor.services.reconstruct_service import ReconstructService

logger = setup_logging('reconstructor')


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


async def invalid_key_handler(request: Request, exc: InvalidKeyError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid key error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "INVALID_KEY"}
    )


async def manifest_unavailable_handler(request: Request, exc: ManifestUnavailable):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Manifest unavailable: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": "MANIFEST_UNAVAILABLE"}
    )


async def manifest_decode_handler(request: Request, exc: ManifestDecodeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Manifest invalid: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": "MANIFEST_INVALID"}
    )


async def chunkcdn_exception_handler(request: Request, exc: ChunkCDNError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Reconstructor exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


def create_app(
    manifest_path: Optional[str] = None,
    chunk_base_url: Optional[str] = None,
    chunk_dir: Optional[str] = None,
    manifest_cache: Optional[ManifestCache] = None,
) -> FastAPI:
    """
    Build the Reconstructor application.

    Arguments default to the environment configuration. The manifest is
    not read here; it is loaded on the first lookup.

    Args:
        manifest_path: Manifest file to serve
        chunk_base_url: Base URL for chunk locations (request base URL when empty)
        chunk_dir: Serve chunk files from this directory under /chunk when set
        manifest_cache: Prebuilt cache, replacing the file-backed one

    Returns:
        Configured FastAPI application
    """
    manifest_path = manifest_path if manifest_path is not None else config.MANIFEST_PATH
    chunk_base_url = chunk_base_url if chunk_base_url is not None else config.CHUNK_BASE_URL
    chunk_dir = chunk_dir if chunk_dir is not None else config.CHUNK_DIR

    if manifest_cache is None:
        manifest_cache = ManifestCache(lambda: read_manifest(manifest_path))

    app = FastAPI(
        title="chunkcdn Reconstructor",
        description="Resolves large-file requests to their ordered chunk locations",
        version="1.0.0"
    )
    app.state.manifest_cache = manifest_cache
    app.state.reconstruct_service = ReconstructService(manifest_cache, chunk_base_url=chunk_base_url)

    app.middleware("http")(log_requests)
    app.add_exception_handler(InvalidKeyError, invalid_key_handler)
    app.add_exception_handler(ManifestUnavailable, manifest_unavailable_handler)
    app.add_exception_handler(ManifestDecodeError, manifest_decode_handler)
    app.add_exception_handler(ChunkCDNError, chunkcdn_exception_handler)

    @app.get("/", response_model=StatusResponse)
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "chunkcdn Reconstructor API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.
        Returns 200 if service is alive.
        """
        return {"status": "healthy", "service": "reconstructor"}

    @app.get("/ready", response_model=ReadyResponse)
    def ready_check():
        """
        Readiness check endpoint.
        Loads the manifest if needed; 503 until it parses.
        """
        try:
            manifest = manifest_cache.get()
        except (ManifestUnavailable, ManifestDecodeError) as e:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"ready": False, "manifest": f"error: {e}", "files": 0}
            )
        return {"ready": True, "manifest": "ok", "files": len(manifest)}

    if chunk_dir:
        if Path(chunk_dir).is_dir():
            app.mount(f"/{CHUNK_NAMESPACE}", StaticFiles(directory=chunk_dir), name=CHUNK_NAMESPACE)
            logger.info(f"Serving chunks from {chunk_dir} at /{CHUNK_NAMESPACE}")
        else:
            logger.warning(f"Chunk directory {chunk_dir} does not exist, not serving chunks")

    app.include_router(chunk_router)

    logger.info(f"Reconstructor configured: manifest={manifest_path} chunk_base_url={chunk_base_url or '<request>'}")
    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "reconstructor.main:app",
        host=config.RECONSTRUCTOR_HOST,
        port=config.RECONSTRUCTOR_PORT,
    )


if __name__ == "__main__":
    main()
