"""
Configuration management for ivfdb.

Provides dataclasses for configuration and utilities
for loading settings from YAML files.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional
import yaml


ENV_CONFIG_PATH = "IVFDB_CONFIG"


@dataclass
class IndexSettings:
    """IVF index configuration."""
    n_lists: int = 100
    max_iterations: int = 20
    probe_ratio: float = 0.2
    max_nprobe: int = 20
    refine_factor: int = 5
    seed: int = 42


@dataclass
class WALSettings:
    """Write-ahead log configuration."""
    enabled: bool = False
    path: str = "./ivfdb_data/ivfdb.wal"
    sync: bool = False


@dataclass
class Settings:
    """
    Main settings container for ivfdb.

    Attributes:
        dimension: Vector dimension
        num_threads: Worker threads for clustering and batch search
            (None = one per CPU)
        log_level: Logging level
        index: IVF index settings
        wal: Write-ahead log settings
    """
    dimension: int = 128
    num_threads: Optional[int] = 4
    log_level: str = "INFO"

    index: IndexSettings = field(default_factory=IndexSettings)
    wal: WALSettings = field(default_factory=WALSettings)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create Settings from dictionary."""
        data = dict(data)

        # Extract nested configs
        index_data = data.pop("index", None) or {}
        wal_data = data.pop("wal", None) or {}

        return cls(
            index=IndexSettings(**index_data),
            wal=WALSettings(**wal_data),
            **data
        )

    def to_dict(self) -> dict:
        """Convert Settings to dictionary."""
        return asdict(self)


def get_default_config_path() -> Path:
    """Get path to default configuration file."""
    # Environment variable wins
    env_config = os.environ.get(ENV_CONFIG_PATH)
    if env_config:
        return Path(env_config)

    # Check for config in current directory
    local_config = Path("./config/default_config.yaml")
    if local_config.exists():
        return local_config

    # Config shipped next to this file
    return Path(__file__).parent / "default_config.yaml"


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default.

    Returns:
        Settings object with loaded configuration

    Example:
        >>> settings = load_config()
        >>> settings = load_config("./my_config.yaml")
    """
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    if not path.exists():
        # Return default settings if no config file
        return Settings()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return Settings()

    return Settings.from_dict(data)
