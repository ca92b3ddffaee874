"""Runtime configuration with YAML overrides"""

import socket
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Network defaults
DEFAULT_PORT = 5050
DEFAULT_IP = "127.0.0.1"
DISCOVERY_PORT = 8888
DISCOVERY_TIMEOUT = 3.0  # seconds
BROADCAST_ADDRESS = "255.255.255.255"

# Transfer defaults
BUFFER_SIZE = 4096
PROGRESS_UPDATE_PERCENTAGE = 5
PROGRESS_UPDATE_BYTES = 256 * 1024
POLL_INTERVAL = 1.0  # seconds
HEADER_TIMEOUT = 30.0  # seconds

DEFAULT_SAVE_DIRECTORY = Path.home() / "Downloads" / "FileBeam"
HISTORY_FILE = "transfer_history.json"


@dataclass
class FileBeamConfig:
    """Settings shared by the sender, receiver and discovery service"""
    transfer_port: int = DEFAULT_PORT
    default_ip: str = DEFAULT_IP
    discovery_port: int = DISCOVERY_PORT
    discovery_timeout: float = DISCOVERY_TIMEOUT
    broadcast_address: str = BROADCAST_ADDRESS
    chunk_size: int = BUFFER_SIZE
    progress_step: int = PROGRESS_UPDATE_PERCENTAGE
    progress_bytes: int = PROGRESS_UPDATE_BYTES
    poll_interval: float = POLL_INTERVAL
    header_timeout: float = HEADER_TIMEOUT
    save_directory: Path = DEFAULT_SAVE_DIRECTORY
    history_file: Path = Path(HISTORY_FILE)
    device_name: str = field(default_factory=socket.gethostname)

    def __post_init__(self):
        self.save_directory = Path(self.save_directory).expanduser()
        self.history_file = Path(self.history_file).expanduser()
        self.validate()

    def validate(self):
        """Reject values the transfer and discovery code cannot work with"""
        for name in ('transfer_port', 'discovery_port'):
            port = getattr(self, name)
            if not isinstance(port, int) or not 0 <= port <= 65535:
                raise ConfigError(f"{name} must be an integer in 0..65535, got {port!r}")

        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigError(f"chunk_size must be a positive integer, got {self.chunk_size!r}")

        if not isinstance(self.progress_step, int) or not 1 <= self.progress_step <= 100:
            raise ConfigError(f"progress_step must be in 1..100, got {self.progress_step!r}")

        if not isinstance(self.progress_bytes, int) or self.progress_bytes <= 0:
            raise ConfigError(f"progress_bytes must be positive, got {self.progress_bytes!r}")

        for name in ('discovery_timeout', 'poll_interval', 'header_timeout'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")

    def with_overrides(self, **overrides) -> 'FileBeamConfig':
        """Return a copy with every non-None override applied"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileBeamConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)


def load_config(path: Optional[Union[str, Path]] = None) -> FileBeamConfig:
    """
    Load configuration from a YAML file.
    A missing path or file yields the defaults.
    """
    if path is None:
        return FileBeamConfig()

    path = Path(path)
    if not path.exists():
        logger.debug(f"Config file {path} not found, using defaults")
        return FileBeamConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return FileBeamConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at top level")

    logger.info(f"Loaded configuration from {path}")
    return FileBeamConfig.from_dict(data)
