"""
FastAPI dependencies for the ivfdb server.
"""

from __future__ import annotations

from typing import Optional
import time

from config import load_config

from .config import get_config
from ..core.engine import VectorEngine
from ..utils.logging import get_logger, setup_logger


logger = get_logger("ivfdb.server")


# =============================================================================
# ENGINE SINGLETON
# =============================================================================

class EngineManager:
    """
    Manages the VectorEngine instance.

    Provides a singleton engine for the application.
    """

    _instance: Optional[VectorEngine] = None
    _start_time: float = 0

    @classmethod
    def get_engine(cls) -> VectorEngine:
        """Get or create the engine instance."""
        if cls._instance is None:
            config = get_config()
            settings = load_config(config.config_path)
            setup_logger(level=settings.log_level)

            engine = VectorEngine.from_settings(settings)
            if engine.wal is not None and config.recover_on_startup:
                engine.recover()

            cls.set_engine(engine)
        return cls._instance

    @classmethod
    def set_engine(cls, engine: VectorEngine) -> None:
        """Install an already constructed engine."""
        cls._instance = engine
        cls._start_time = time.time()

    @classmethod
    def get_uptime(cls) -> float:
        """Get server uptime in seconds."""
        if cls._start_time == 0:
            return 0
        return time.time() - cls._start_time

    @classmethod
    def shutdown(cls) -> None:
        """Shutdown the engine."""
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None
            cls._start_time = 0


def get_engine() -> VectorEngine:
    """Dependency to get the engine instance."""
    return EngineManager.get_engine()


def get_uptime() -> float:
    """Dependency to get server uptime."""
    return EngineManager.get_uptime()
