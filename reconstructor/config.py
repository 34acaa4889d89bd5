"""Configuration settings for the Reconstructor server."""

import os

from common.constants import MANIFEST_FILENAME


MANIFEST_PATH = os.environ.get("RECONSTRUCTOR_MANIFEST_PATH", MANIFEST_FILENAME)

# Base URL chunk locations are built from; the request's own base URL when empty.
CHUNK_BASE_URL = os.environ.get("RECONSTRUCTOR_CHUNK_BASE_URL", "")

# Serve chunk files from this directory under the chunk namespace when set.
CHUNK_DIR = os.environ.get("RECONSTRUCTOR_CHUNK_DIR", "")

RECONSTRUCTOR_HOST = os.environ.get("RECONSTRUCTOR_HOST", "0.0.0.0")

RECONSTRUCTOR_PORT = int(os.environ.get("PORT", os.environ.get("RECONSTRUCTOR_PORT", "8080")))
