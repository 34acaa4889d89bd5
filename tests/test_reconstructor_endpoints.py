"""Tests for the Reconstructor HTTP API."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from common.manifest_codec import write_manifest
from common.types import ChunkDescriptor, build_manifest
from reconstructor.main import create_app
from reconstructor.manifest_cache import ManifestCache
from reconstructor.routes.chunk_routes import get_file_chunks
from reconstructor.services.reconstruct_service import ReconstructService


@pytest.fixture
def manifest_path(tmp_path, sample_manifest):
    path = tmp_path / 'chunks.json'
    write_manifest(path, sample_manifest)
    return path


@pytest.fixture
def client(manifest_path):
    app = create_app(manifest_path=str(manifest_path), chunk_base_url='https://demo.appspot.com', chunk_dir='')
    return TestClient(app)


def test_root(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'message': 'chunkcdn Reconstructor API', 'status': 'running'}


def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


def test_ready(client):
    response = client.get('/ready')

    assert response.status_code == 200
    assert response.json() == {'ready': True, 'manifest': 'ok', 'files': 2}


def test_lookup_returns_ordered_chunk_list(client):
    response = client.get('/video.mp4')

    assert response.status_code == 200
    assert response.json() == [
        {
            'resolvedChunkLocation': 'https://demo.appspot.com/chunk/C00000000.chk',
            'compressedLength': 29_871_234,
            'encoding': 'gzip',
        },
        {
            'resolvedChunkLocation': 'https://demo.appspot.com/chunk/C00000001.chk',
            'compressedLength': 30_000_000,
            'encoding': 'identity',
        },
        {
            'resolvedChunkLocation': 'https://demo.appspot.com/chunk/C00000002.chk',
            'compressedLength': 10_000_000,
            'encoding': 'identity',
        },
    ]


def test_unknown_file_is_empty_list(client):
    response = client.get('/missing.bin')

    assert response.status_code == 200
    assert response.json() == []


def test_nested_path_is_bad_request(client):
    response = client.get('/a/b')

    assert response.status_code == 400
    assert response.json()['code'] == 'INVALID_KEY'


def test_request_id_echoed(client):
    response = client.get('/notes.txt', headers={'X-Request-ID': 'req-123'})

    assert response.headers['X-Request-ID'] == 'req-123'


def test_request_id_generated(client):
    assert client.get('/notes.txt').headers.get('X-Request-ID')


def test_location_defaults_to_request_base_url(manifest_path):
    client = TestClient(create_app(manifest_path=str(manifest_path), chunk_base_url='', chunk_dir=''))

    (chunk,) = client.get('/notes.txt').json()

    assert chunk['resolvedChunkLocation'] == 'http://testserver/chunk/C00000003.chk'


class TestManifestErrors:

    def test_missing_manifest(self, tmp_path):
        client = TestClient(create_app(manifest_path=str(tmp_path / 'absent.json'), chunk_base_url='', chunk_dir=''))

        response = client.get('/video.mp4')

        assert response.status_code == 503
        assert response.json()['code'] == 'MANIFEST_UNAVAILABLE'

    def test_corrupt_manifest(self, tmp_path):
        path = tmp_path / 'chunks.json'
        path.write_text('{"video.mp4": "not a list"}')
        client = TestClient(create_app(manifest_path=str(path), chunk_base_url='', chunk_dir=''))

        response = client.get('/video.mp4')

        assert response.status_code == 503
        assert response.json()['code'] == 'MANIFEST_INVALID'

    def test_not_ready_without_manifest(self, tmp_path):
        client = TestClient(create_app(manifest_path=str(tmp_path / 'absent.json'), chunk_base_url='', chunk_dir=''))

        response = client.get('/ready')

        assert response.status_code == 503
        assert response.json()['ready'] is False

    def test_manifest_deployed_after_start(self, tmp_path, sample_manifest):
        path = tmp_path / 'chunks.json'
        client = TestClient(create_app(manifest_path=str(path), chunk_base_url='', chunk_dir=''))

        assert client.get('/video.mp4').status_code == 503

        write_manifest(path, sample_manifest)
        assert len(client.get('/video.mp4').json()) == 3


def test_serves_chunk_files(tmp_path, manifest_path):
    chunk_dir = tmp_path / 'chunk'
    chunk_dir.mkdir()
    (chunk_dir / 'C00000003.chk').write_bytes(b'stored chunk bytes')
    client = TestClient(create_app(manifest_path=str(manifest_path), chunk_base_url='', chunk_dir=str(chunk_dir)))

    (chunk,) = client.get('/notes.txt').json()
    response = client.get(chunk['resolvedChunkLocation'])

    assert response.status_code == 200
    assert response.content == b'stored chunk bytes'


def test_key_with_reserved_characters(tmp_path):
    path = tmp_path / 'chunks.json'
    write_manifest(path, build_manifest({'take#2.mp4': [ChunkDescriptor('C00000000.chk', 10, 'identity')]}))
    client = TestClient(create_app(manifest_path=str(path), chunk_base_url='https://demo.appspot.com', chunk_dir=''))

    (chunk,) = client.get('/take%232.mp4').json()

    assert chunk['resolvedChunkLocation'] == 'https://demo.appspot.com/chunk/C00000000.chk'


def test_lookup_uses_matched_key_not_mounted_path(sample_manifest):
    service = ReconstructService(ManifestCache(lambda: sample_manifest))
    request = SimpleNamespace(
        url=SimpleNamespace(path='/cdn/notes.txt'),
        base_url='http://testserver/cdn/',
    )

    (chunk,) = get_file_chunks('notes.txt', request, service)

    assert chunk.resolved_chunk_location == 'http://testserver/cdn/chunk/C00000003.chk'
    assert chunk.compressed_length == 812
