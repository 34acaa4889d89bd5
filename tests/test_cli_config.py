"""Tests for CLI configuration module."""

import json
import pytest
from cli.config import Config


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.chunkcdn' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()

    assert config.data['reconstructor_host'] == 'localhost'
    assert config.data['reconstructor_port'] == 8080
    assert config.data['scheme'] == 'http'
    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3
    assert config.data['retry_backoff_multiplier'] == 2


def test_config_loads_existing_file(tmp_path):
    """Test loading existing config file."""
    config_path = tmp_path / '.chunkcdn' / 'config.json'
    config_path.parent.mkdir(parents=True)

    existing_data = {
        'reconstructor_host': 'sinuous-vortex-700.appspot.com',
        'reconstructor_port': 443,
        'scheme': 'https',
    }
    with open(config_path, 'w') as f:
        json.dump(existing_data, f)

    config = Config(config_path)

    assert config.get_base_url() == 'https://sinuous-vortex-700.appspot.com:443'
    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3


def test_get_base_url(temp_config):
    """Test base URL construction."""
    assert temp_config.get_base_url() == 'http://localhost:8080'


def test_set_server_persists(temp_config):
    """Test changing server and saving it."""
    temp_config.set_server('cdn.example.com', 9000)

    assert temp_config.get_base_url() == 'http://cdn.example.com:9000'

    with open(temp_config.config_path, 'r') as f:
        data = json.load(f)
    assert data['reconstructor_host'] == 'cdn.example.com'
    assert data['reconstructor_port'] == 9000


def test_get_timeout(temp_config):
    """Test getting timeout value."""
    assert temp_config.get_timeout() == 30

    temp_config.data['timeout'] = 60
    assert temp_config.get_timeout() == 60


def test_get_retry_config(temp_config):
    """Test getting retry configuration."""
    retry_config = temp_config.get_retry_config()

    assert retry_config['max_retries'] == 3
    assert retry_config['retry_backoff_multiplier'] == 2


@pytest.mark.parametrize('contents', ['{ invalid json }', '[1, 2, 3]'])
def test_corrupted_config_file(tmp_path, contents):
    """Test handling of corrupted config file."""
    config_path = tmp_path / '.chunkcdn' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        f.write(contents)

    config = Config(config_path)

    assert config.data['reconstructor_host'] == 'localhost'
    assert config.data['reconstructor_port'] == 8080

    backup_path = config_path.with_suffix('.json.bak')
    assert backup_path.exists()
    assert backup_path.read_text() == contents


def test_config_directory_creation(tmp_path):
    """Test that config directory is created if missing."""
    config_path = tmp_path / 'nested' / 'dirs' / '.chunkcdn' / 'config.json'

    assert not config_path.parent.exists()

    Config(config_path)

    assert config_path.parent.exists()
    assert config_path.exists()
