"""Shared pytest fixtures for all tests."""

import random

import pytest

from chunker.chunk_storage import ChunkStorage
from chunker.run_context import ChunkingRunContext
from cli.config import Config
from common.constants import ENCODING_GZIP, ENCODING_IDENTITY
from common.types import ChunkDescriptor, build_manifest


def incompressible_bytes(size: int, seed: int = 1234) -> bytes:
    """Deterministic pseudo-random bytes that gzip cannot shrink."""
    return random.Random(seed).randbytes(size)


@pytest.fixture
def chunk_storage(tmp_path):
    """
    Create chunk storage in a temporary app directory.

    Returns:
        ChunkStorage rooted at tmp_path/app/chunk
    """
    return ChunkStorage(tmp_path / 'app' / 'chunk')


@pytest.fixture
def run_context():
    """Fresh run context for each test."""
    return ChunkingRunContext()


@pytest.fixture
def sample_manifest():
    """
    Manifest with one multi-chunk file and one single-chunk file.
    """
    return build_manifest({
        'video.mp4': [
            ChunkDescriptor('C00000000.chk', 29_871_234, ENCODING_GZIP),
            ChunkDescriptor('C00000001.chk', 30_000_000, ENCODING_IDENTITY),
            ChunkDescriptor('C00000002.chk', 10_000_000, ENCODING_IDENTITY),
        ],
        'notes.txt': [
            ChunkDescriptor('C00000003.chk', 812, ENCODING_GZIP),
        ],
    })


@pytest.fixture
def source_tree(tmp_path):
    """
    Create a source directory with visible, hidden and nested files.

    Returns:
        Path to the source directory
    """
    src = tmp_path / 'src'
    src.mkdir()
    (src / 'video.mp4').write_bytes(incompressible_bytes(2500, seed=1))
    (src / 'notes.txt').write_bytes(b'chunk me please ' * 200)
    (src / 'empty.bin').write_bytes(b'')
    (src / '.hidden').write_bytes(b'secret')
    (src / '.git').mkdir()
    (src / '.git' / 'HEAD').write_bytes(b'ref: refs/heads/main\n')
    (src / 'nested').mkdir()
    (src / 'nested' / 'deep.dat').write_bytes(b'abc' * 50)
    return src


@pytest.fixture
def temp_config(tmp_path):
    """
    Create temporary client config instance.

    Returns:
        Config instance with temp config file
    """
    config_dir = tmp_path / '.chunkcdn'
    config_dir.mkdir()
    return Config(config_dir / 'config.json')


@pytest.fixture
def random_bytes():
    """
    Factory for deterministic incompressible payloads.

    Returns:
        Callable taking (size, seed=1234) and returning bytes
    """
    return incompressible_bytes
