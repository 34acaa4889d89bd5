"""Serialize and parse the manifest (file key -> ordered chunk descriptors).

Wire format is a JSON object keyed by file key. Each value is the ordered
list of chunk records for that file:

    {
      "video.mp4": [
        {"ChunkName": "C00000000.chk", "CompressedLength": 29871234, "Encoding": "gzip"},
        {"ChunkName": "C00000001.chk", "CompressedLength": 10000000, "Encoding": "identity"}
      ]
    }

Records written without "Encoding" are read as gzip chunks. The encoded
form may be gzip-wrapped as a whole; decode detects this from the gzip
magic bytes, which a JSON document can never start with.
"""

import gzip
import json
import zlib
from pathlib import Path
from typing import Union

from common.constants import GZIP_BEST_COMPRESSION, GZIP_MAGIC, ENCODING_GZIP, SUPPORTED_ENCODINGS
from common.exceptions import ManifestDecodeError, ManifestEncodeError, ManifestUnavailable
from common.logging_config import get_logger
from common.types import ChunkDescriptor, Manifest

logger = get_logger(__name__)

NAME_FIELD = "ChunkName"
LENGTH_FIELD = "CompressedLength"
ENCODING_FIELD = "Encoding"


def descriptor_to_dict(descriptor: ChunkDescriptor) -> dict:
    return {
        NAME_FIELD: descriptor.name,
        LENGTH_FIELD: descriptor.compressed_length,
        ENCODING_FIELD: descriptor.encoding,
    }


def descriptor_from_dict(data: object, file_key: str, position: int) -> ChunkDescriptor:
    """
    Validate and convert one chunk record.

    Raises:
        ManifestDecodeError: If the record is malformed
    """
    where = f"{file_key!r}[{position}]"
    if not isinstance(data, dict):
        raise ManifestDecodeError(f"Chunk record {where} is not an object")

    name = data.get(NAME_FIELD)
    if not isinstance(name, str) or not name:
        raise ManifestDecodeError(f"Chunk record {where} has no valid {NAME_FIELD}")

    length = data.get(LENGTH_FIELD)
    if isinstance(length, bool) or not isinstance(length, int) or length < 0:
        raise ManifestDecodeError(f"Chunk record {where} has invalid {LENGTH_FIELD}: {length!r}")

    encoding = data.get(ENCODING_FIELD, ENCODING_GZIP)
    if encoding not in SUPPORTED_ENCODINGS:
        raise ManifestDecodeError(f"Chunk record {where} has unknown {ENCODING_FIELD}: {encoding!r}")

    return ChunkDescriptor(name=name, compressed_length=length, encoding=encoding)


def _reject_duplicate_keys(pairs: list) -> dict:
    result = {}
    for key, value in pairs:
        if key in result:
            raise ManifestDecodeError(f"Duplicate key in manifest: {key!r}")
        result[key] = value
    return result


def encode_manifest(manifest: Manifest, compress: bool = False) -> bytes:
    """
    Encode a manifest as JSON bytes.

    Args:
        manifest: Manifest to encode
        compress: Gzip the encoded JSON as a whole

    Returns:
        Encoded manifest bytes

    Raises:
        ManifestEncodeError: If the manifest cannot be serialized
    """
    try:
        payload = {
            file_key: [descriptor_to_dict(d) for d in manifest.get(file_key)]
            for file_key in manifest.keys()
        }
        text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
        data = text.encode("utf-8")
    except (TypeError, ValueError, AttributeError) as e:
        raise ManifestEncodeError(f"Failed to encode manifest: {e}") from e

    if compress:
        try:
            data = gzip.compress(data, compresslevel=GZIP_BEST_COMPRESSION, mtime=0)
        except (OSError, zlib.error) as e:
            raise ManifestEncodeError(f"Failed to compress manifest: {e}") from e

    return data


def decode_manifest(data: bytes) -> Manifest:
    """
    Decode manifest bytes produced by encode_manifest.

    Empty input decodes to an empty manifest.

    Raises:
        ManifestDecodeError: If the bytes are not a valid manifest
    """
    if data.startswith(GZIP_MAGIC):
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise ManifestDecodeError(f"Manifest is not valid gzip: {e}") from e

    if not data.strip():
        return Manifest()

    try:
        payload = json.loads(data.decode("utf-8"), object_pairs_hook=_reject_duplicate_keys)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestDecodeError(f"Manifest is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ManifestDecodeError("Manifest must be a JSON object keyed by file")

    manifest = Manifest()
    for file_key, records in payload.items():
        if not isinstance(records, list):
            raise ManifestDecodeError(f"Chunk list for {file_key!r} is not a list")
        manifest.add(
            file_key,
            [descriptor_from_dict(record, file_key, i) for i, record in enumerate(records)],
        )
    return manifest


def write_manifest(path: Union[str, Path], manifest: Manifest, compress: bool = False) -> int:
    """
    Encode and write a manifest to the manifest store.

    Returns:
        Number of bytes written

    Raises:
        ManifestEncodeError: If encoding or writing fails
    """
    data = encode_manifest(manifest, compress=compress)
    path = Path(path)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise ManifestEncodeError(f"Failed to write manifest {path}: {e}") from e

    logger.info(f"Wrote manifest {path}: {len(manifest)} files, {manifest.total_chunks()} chunks, {len(data)} bytes")
    return len(data)


def read_manifest(path: Union[str, Path]) -> Manifest:
    """
    Read and decode a manifest from the manifest store.

    Raises:
        ManifestUnavailable: If the manifest file cannot be read
        ManifestDecodeError: If its contents are not a valid manifest
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ManifestUnavailable(f"Cannot read manifest {path}: {e}") from e

    manifest = decode_manifest(data)
    logger.info(f"Parsed {len(data)} bytes of manifest into {len(manifest)} entries")
    return manifest
