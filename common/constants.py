"""Project-wide constants (chunk limits, names shared by producer and consumer)."""

HOSTING_OBJECT_CEILING_BYTES: int = 32_000_000  # per-object upload/serving limit
MAX_CHUNK_PAYLOAD_BYTES: int = HOSTING_OBJECT_CEILING_BYTES - 2_000_000

CHUNK_NAMESPACE: str = "chunk"
CHUNK_NAME_PREFIX: str = "C"
CHUNK_FILE_SUFFIX: str = ".chk"

MANIFEST_FILENAME: str = "chunks.json"
COMPRESSED_MANIFEST_FILENAME: str = "chunks.json.gz"
APP_YAML_FILENAME: str = "app.yaml"

ENCODING_GZIP: str = "gzip"
ENCODING_IDENTITY: str = "identity"
SUPPORTED_ENCODINGS = (ENCODING_GZIP, ENCODING_IDENTITY)

GZIP_BEST_COMPRESSION: int = 9
GZIP_MAGIC: bytes = b"\x1f\x8b"
