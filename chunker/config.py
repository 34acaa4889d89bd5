"""Configuration settings for the chunker (environment defaults for CLI options)."""

import os

from common.constants import MAX_CHUNK_PAYLOAD_BYTES


MAX_CHUNK_PAYLOAD = int(os.environ.get("CHUNKER_MAX_CHUNK_PAYLOAD", str(MAX_CHUNK_PAYLOAD_BYTES)))

WORKERS = int(os.environ.get("CHUNKER_WORKERS", "1"))

COMPRESS_MANIFEST = os.environ.get("CHUNKER_COMPRESS_MANIFEST", "false").lower() in ("1", "true", "yes")
