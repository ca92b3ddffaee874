"""Test configuration loading"""

from pathlib import Path

import pytest

from filebeam.config import FileBeamConfig, load_config, DEFAULT_PORT, DISCOVERY_PORT
from filebeam.errors import ConfigError


class TestFileBeamConfig:
    """Test defaults and validation"""

    def test_defaults(self):
        config = FileBeamConfig()

        assert config.transfer_port == DEFAULT_PORT == 5050
        assert config.discovery_port == DISCOVERY_PORT == 8888
        assert config.chunk_size == 4096
        assert config.progress_step == 5
        assert config.progress_bytes == 262144
        assert config.discovery_timeout == 3.0
        assert config.header_timeout == 30.0
        assert config.device_name

    @pytest.mark.parametrize("overrides", [
        {'transfer_port': 70000},
        {'discovery_port': -1},
        {'chunk_size': 0},
        {'progress_step': 0},
        {'progress_step': 101},
        {'progress_bytes': 0},
        {'discovery_timeout': 0},
        {'poll_interval': -1.0},
        {'header_timeout': 0},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            FileBeamConfig(**overrides)

    def test_with_overrides_skips_none(self):
        config = FileBeamConfig().with_overrides(transfer_port=6000, save_directory=None)

        assert config.transfer_port == 6000
        assert config.save_directory == FileBeamConfig().save_directory

    def test_paths_are_expanded(self):
        config = FileBeamConfig(save_directory="~/incoming")
        assert config.save_directory == Path.home() / "incoming"


class TestLoadConfig:
    """Test YAML loading"""

    def test_no_path(self):
        assert load_config(None) == FileBeamConfig()

    def test_missing_file(self, temp_dir):
        assert load_config(temp_dir / "absent.yaml") == FileBeamConfig()

    def test_empty_file(self, temp_dir):
        path = temp_dir / "empty.yaml"
        path.write_text("")
        assert load_config(path) == FileBeamConfig()

    def test_values_from_file(self, temp_dir):
        path = temp_dir / "filebeam.yaml"
        path.write_text(
            "transfer_port: 6060\n"
            "chunk_size: 8192\n"
            "save_directory: /tmp/filebeam-in\n"
            "device_name: office-pc\n"
        )

        config = load_config(path)

        assert config.transfer_port == 6060
        assert config.chunk_size == 8192
        assert config.save_directory == Path("/tmp/filebeam-in")
        assert config.device_name == "office-pc"

    def test_unknown_key(self, temp_dir):
        path = temp_dir / "filebeam.yaml"
        path.write_text("transfer_prot: 6060\n")

        with pytest.raises(ConfigError, match="transfer_prot"):
            load_config(path)

    def test_not_a_mapping(self, temp_dir):
        path = temp_dir / "filebeam.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "filebeam.yaml"
        path.write_text("transfer_port: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config(path)
