"""Tests for write-once chunk storage."""

import pytest

from common.exceptions import ChunkWriteError


def test_write_chunk(chunk_storage):
    stored = chunk_storage.write_chunk('C00000000.chk', b'payload')

    assert stored == 7
    assert chunk_storage.get_chunk_path('C00000000.chk').read_bytes() == b'payload'
    assert chunk_storage.get_chunk_path('C00000000.chk').stat().st_size == 7


def test_write_creates_directory(chunk_storage):
    assert not chunk_storage.chunks_dir.exists()
    chunk_storage.write_chunk('C00000000.chk', b'x')
    assert chunk_storage.chunks_dir.is_dir()


def test_chunks_are_write_once(chunk_storage):
    chunk_storage.write_chunk('C00000000.chk', b'first')

    with pytest.raises(ChunkWriteError):
        chunk_storage.write_chunk('C00000000.chk', b'second')

    assert chunk_storage.get_chunk_path('C00000000.chk').read_bytes() == b'first'


def test_reset_removes_previous_chunks(chunk_storage):
    chunk_storage.write_chunk('C00000000.chk', b'old')
    chunk_storage.reset()

    assert chunk_storage.chunks_dir.is_dir()
    assert chunk_storage.list_chunks() == []


def test_list_chunks_sorted(chunk_storage):
    for name in ('C00000002.chk', 'C00000000.chk', 'C00000001.chk'):
        chunk_storage.write_chunk(name, b'x')
    (chunk_storage.chunks_dir / 'notes.txt').write_text('ignored')

    assert chunk_storage.list_chunks() == ['C00000000.chk', 'C00000001.chk', 'C00000002.chk']


def test_list_chunks_without_directory(chunk_storage):
    assert chunk_storage.list_chunks() == []
