"""
Server configuration.
"""

from dataclasses import dataclass, field
from typing import Optional, List
import os


@dataclass
class ServerConfig:
    """Configuration for the ivfdb server."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # API settings
    api_prefix: str = "/api/v1"
    docs_enabled: bool = True
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # Engine settings (YAML file read by config.load_config)
    config_path: Optional[str] = None
    recover_on_startup: bool = True

    # Limits
    max_vectors_per_request: int = 10000
    max_queries_per_request: int = 100

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("IVFDB_HOST", "0.0.0.0"),
            port=int(os.getenv("IVFDB_PORT", "8000")),
            config_path=os.getenv("IVFDB_CONFIG"),
            recover_on_startup=os.getenv("IVFDB_RECOVER", "1") not in ("0", "false", "False"),
            log_level=os.getenv("IVFDB_LOG_LEVEL", "INFO"),
            max_vectors_per_request=int(os.getenv("IVFDB_MAX_VECTORS", "10000")),
        )


# Global configuration
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get server configuration."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: ServerConfig) -> None:
    """Set server configuration."""
    global _config
    _config = config
