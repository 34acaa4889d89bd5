"""Tests for file chunking."""

import gzip
import io

import pytest

from chunker.chunker import FileChunker, chunk_plan, get_chunk_count
from cli.reassembly import reassemble_from_directory
from common.constants import ENCODING_GZIP, ENCODING_IDENTITY
from common.exceptions import ChunkWriteError, ShortReadError, SourceUnreadable


def rebuild(storage, descriptors) -> bytes:
    out = io.BytesIO()
    reassemble_from_directory(storage.chunks_dir, descriptors, out)
    return out.getvalue()


class TestChunkPlan:
    """Chunk boundaries depend only on the source length."""

    def test_seventy_megabytes_in_thirty_megabyte_chunks(self):
        assert chunk_plan(70_000_000, 30_000_000) == [30_000_000, 30_000_000, 10_000_000]

    def test_exact_multiple_has_no_trailing_empty_chunk(self):
        assert chunk_plan(60_000_000, 30_000_000) == [30_000_000, 30_000_000]

    def test_small_file_is_one_chunk(self):
        assert chunk_plan(10, 30_000_000) == [10]

    def test_empty_file_has_no_chunks(self):
        assert chunk_plan(0, 100) == []
        assert get_chunk_count(0, 100) == 0

    @pytest.mark.parametrize("size,bound", [(1, 1), (99, 10), (100, 10), (101, 10), (12345, 1000)])
    def test_count_is_ceiling_and_sum_is_size(self, size, bound):
        plan = chunk_plan(size, bound)
        assert len(plan) == -(-size // bound)
        assert sum(plan) == size
        assert all(0 < n <= bound for n in plan)

    def test_non_positive_bound_rejected(self):
        with pytest.raises(ValueError):
            chunk_plan(10, 0)


class TestFileChunker:

    def test_chunks_reassemble_to_original(self, chunk_storage, run_context, random_bytes):
        data = random_bytes(700) + b'z' * 1300
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=300)

        descriptors = chunker.chunk_stream(io.BytesIO(data), 'mixed.bin', len(data))

        assert len(descriptors) == 7
        assert rebuild(chunk_storage, descriptors) == data

    def test_compression_fallback_per_chunk(self, chunk_storage, run_context, random_bytes):
        data = random_bytes(300) + b'z' * 300
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=300)

        first, second = chunker.chunk_stream(io.BytesIO(data), 'mixed.bin', len(data))

        assert first.encoding == ENCODING_IDENTITY
        assert first.compressed_length == 300
        assert chunk_storage.get_chunk_path(first.name).read_bytes() == data[:300]

        assert second.encoding == ENCODING_GZIP
        assert second.compressed_length < 300
        assert gzip.decompress(chunk_storage.get_chunk_path(second.name).read_bytes()) == data[300:]

    def test_descriptor_length_matches_stored_object(self, chunk_storage, run_context):
        data = b'abcdefgh' * 1000
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=3000)

        for descriptor in chunker.chunk_stream(io.BytesIO(data), 'a.txt', len(data)):
            assert chunk_storage.get_chunk_path(descriptor.name).stat().st_size == descriptor.compressed_length

    def test_ten_byte_file_stored_raw(self, chunk_storage, run_context, tmp_path):
        source = tmp_path / 'tiny.bin'
        source.write_bytes(b'0123456789')
        chunker = FileChunker(chunk_storage, run_context)

        (descriptor,) = chunker.chunk_file(source, 'tiny.bin')

        assert descriptor.compressed_length == 10
        assert descriptor.encoding == ENCODING_IDENTITY
        assert chunk_storage.get_chunk_path(descriptor.name).read_bytes() == b'0123456789'

    def test_seventy_megabyte_file(self, chunk_storage, run_context):
        size = 70_000_000
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=30_000_000)

        descriptors = chunker.chunk_stream(io.BytesIO(bytes(size)), 'zeros.bin', size)

        assert len(descriptors) == 3
        source_lengths = [
            len(gzip.decompress(chunk_storage.get_chunk_path(d.name).read_bytes())) for d in descriptors
        ]
        assert source_lengths == [30_000_000, 30_000_000, 10_000_000]

    def test_empty_file_publishes_empty_list(self, chunk_storage, run_context):
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=10)

        assert chunker.chunk_stream(io.BytesIO(b''), 'empty.bin', 0) == []
        assert run_context.is_published('empty.bin')
        assert chunk_storage.list_chunks() == []

    def test_descriptors_published_under_file_key(self, chunk_storage, run_context):
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=4)

        descriptors = chunker.chunk_stream(io.BytesIO(b'0123456789'), 'digits', 10)

        assert run_context.snapshot().get('digits') == tuple(descriptors)

    def test_chunk_names_follow_counter(self, chunk_storage, run_context):
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=4)

        first = chunker.chunk_stream(io.BytesIO(b'0123456789'), 'a', 10)
        second = chunker.chunk_stream(io.BytesIO(b'0123'), 'b', 4)

        names = [d.name for d in first + second]
        assert names == ['C00000000.chk', 'C00000001.chk', 'C00000002.chk', 'C00000003.chk']

    def test_short_read_raises_with_context(self, chunk_storage, run_context):
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=4)

        with pytest.raises(ShortReadError) as exc_info:
            chunker.chunk_stream(io.BytesIO(b'0123456'), 'shrunk', 10, source_label='/data/shrunk')

        error = exc_info.value
        assert error.source_path == '/data/shrunk'
        assert error.chunk_index == 1
        assert error.expected == 4
        assert error.actual == 3

    def test_failed_file_is_not_published_but_chunks_remain(self, chunk_storage, run_context):
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=4)

        with pytest.raises(ShortReadError):
            chunker.chunk_stream(io.BytesIO(b'0123456'), 'shrunk', 10)

        assert not run_context.is_published('shrunk')
        assert chunk_storage.list_chunks() == ['C00000000.chk']

    def test_missing_source_is_unreadable(self, chunk_storage, run_context, tmp_path):
        chunker = FileChunker(chunk_storage, run_context)

        with pytest.raises(SourceUnreadable) as exc_info:
            chunker.chunk_file(tmp_path / 'nope.bin', 'nope.bin', 10)

        assert exc_info.value.source_path == str(tmp_path / 'nope.bin')

    def test_existing_chunk_name_is_write_error(self, chunk_storage, run_context):
        chunk_storage.ensure_directory()
        chunk_storage.get_chunk_path('C00000000.chk').write_bytes(b'old')
        chunker = FileChunker(chunk_storage, run_context, max_chunk_payload=4)

        with pytest.raises(ChunkWriteError) as exc_info:
            chunker.chunk_stream(io.BytesIO(b'0123'), 'a', 4, source_label='a')

        assert exc_info.value.chunk_index == 0
        assert exc_info.value.source_path == 'a'
        assert chunk_storage.get_chunk_path('C00000000.chk').read_bytes() == b'old'

    def test_invalid_bound_rejected(self, chunk_storage, run_context):
        with pytest.raises(ValueError):
            FileChunker(chunk_storage, run_context, max_chunk_payload=0)
