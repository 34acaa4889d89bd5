"""HTTP client for the Reconstructor: chunk lookup, fetch and reassembly."""

import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional
from urllib.parse import quote

import httpx

from cli.config import Config
from cli.constants import PARTIAL_SUFFIX
from cli.reassembly import decode_chunk, verify_chunk_length
from cli.utils import DownloadProgress, format_file_size
from common.exceptions import (
    ChunkCDNError,
    FileNotInManifestError,
    InvalidKeyError,
    ManifestUnavailable,
)
from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RemoteChunk:
    """
    One entry of a Reconstructor chunk list.
    """
    location: str
    compressed_length: int
    encoding: str


class ReconstructorClient:
    """HTTP client for the Reconstructor API with retry logic and error handling."""

    def __init__(self, config: Config, show_progress: bool = False):
        """
        Initialize reconstructor client.

        Args:
            config: Configuration instance
            show_progress: Draw download progress to stdout
        """
        self.config = config
        self.show_progress = show_progress
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            follow_redirects=True,
        )
        self.request_id = None
        logger.info(f"Initialized ReconstructorClient [base_url={config.get_base_url()}]")

    def close(self) -> None:
        self.session.close()

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Only used for reads: lookups and chunk fetches are idempotent.

        Args:
            method: HTTP method
            endpoint: API endpoint path or absolute chunk URL
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        if 'headers' not in kwargs:
            kwargs['headers'] = {}
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(
            f"Making request: {method} {endpoint} [request_id={self.request_id}]"
        )

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to reconstructor server. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        error_messages = {
            'INVALID_KEY': 'Invalid file key. Use a single file name such as video.mp4.',
            'MANIFEST_UNAVAILABLE': 'Server is not ready: chunk manifest unavailable.',
            'MANIFEST_INVALID': 'Server is not ready: chunk manifest is corrupt.',
        }

        if code in error_messages:
            return error_messages[code]

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            500: 'Server error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def list_chunks(self, key: str) -> List[RemoteChunk]:
        """
        Fetch the ordered chunk list of a file.

        Args:
            key: File key, e.g. "video.mp4"

        Returns:
            Chunks in reassembly order; empty if the file is unknown

        Raises:
            InvalidKeyError: On a 400 response
            ManifestUnavailable: On a 503 response
            ChunkCDNError: On any other unexpected status
            ConnectionError: If the server cannot be reached
        """
        response = self._request_with_retry('GET', '/' + quote(key.lstrip('/'), safe=''))

        if response.status_code == 200:
            return [
                RemoteChunk(
                    location=item['resolvedChunkLocation'],
                    compressed_length=item['compressedLength'],
                    encoding=item['encoding'],
                )
                for item in response.json()
            ]

        message = self._format_error(response)
        if response.status_code == 400:
            raise InvalidKeyError(message)
        if response.status_code == 503:
            raise ManifestUnavailable(message)
        raise ChunkCDNError(message)

    def fetch_chunk(self, chunk: RemoteChunk) -> bytes:
        """
        Download one chunk and check its size.

        Raises:
            ChunkCDNError: On a non-200 response
            ChunkSizeMismatchError: If the body length differs from the manifest
        """
        response = self._request_with_retry('GET', chunk.location)
        if response.status_code != 200:
            raise ChunkCDNError(f"Chunk fetch failed: {chunk.location} status={response.status_code}")

        data = response.content
        verify_chunk_length(data, chunk.compressed_length, name=chunk.location)
        return data

    def download_to(self, key: str, out: BinaryIO) -> int:
        """
        Rebuild a file into a writable stream.

        Chunks are fetched one at a time, in order, and each is decoded
        before the next is requested.

        Returns:
            Number of bytes written

        Raises:
            FileNotInManifestError: If the key has no chunks
        """
        chunks = self.list_chunks(key)
        if not chunks:
            raise FileNotInManifestError(f"File not found: {key}")

        progress = DownloadProgress(
            key,
            total_bytes=sum(c.compressed_length for c in chunks),
            chunk_count=len(chunks),
            enabled=self.show_progress,
        )

        written = 0
        try:
            for chunk in chunks:
                data = self.fetch_chunk(chunk)
                payload = decode_chunk(data, chunk.encoding)
                out.write(payload)
                written += len(payload)
                progress.update(len(data))
        finally:
            progress.finish()

        logger.info(f"Reassembled {key} from {len(chunks)} chunks ({written} bytes)")
        return written

    def list_file(self, key: str) -> str:
        """
        Describe the chunks of a file.

        Returns:
            Chunk listing or error message
        """
        try:
            chunks = self.list_chunks(key)
        except (ChunkCDNError, ConnectionError) as e:
            return f"Error: {e}"

        if not chunks:
            return f"File not found: {key}"

        lines = [f"{key}: {len(chunks)} chunks"]
        for i, chunk in enumerate(chunks):
            lines.append(
                f"  [{i}] {chunk.location} {format_file_size(chunk.compressed_length)} ({chunk.encoding})"
            )
        return "\n".join(lines)

    def download(self, key: str, output_path: Optional[str] = None) -> str:
        """
        Download and reassemble a file to disk.

        The file is written to a .part sibling first and renamed once
        every chunk has been fetched, decoded and written.

        Args:
            key: File key
            output_path: Destination path; defaults to the key in the current directory

        Returns:
            Success or error message
        """
        destination = Path(output_path) if output_path else Path(key.lstrip('/'))
        if destination.is_dir():
            destination = destination / key.lstrip('/')
        partial = destination.with_name(destination.name + PARTIAL_SUFFIX)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with open(partial, 'wb') as out:
                written = self.download_to(key, out)
            os.replace(partial, destination)
        except (ChunkCDNError, ConnectionError, OSError) as e:
            logger.error(f"Download failed for {key}: {e}")
            if partial.exists():
                partial.unlink()
            return f"Download failed: {e}"

        return f"Downloaded {key} to {destination} ({format_file_size(written)})"
