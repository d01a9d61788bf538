"""Runtime settings for File Scavenger.

Loads environment variables (optionally from a .env file) and provides
centralized access to the scan tunables.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Version - Managed by tools/sync_version.py (DO NOT EDIT MANUALLY)
__version__ = "1.0.0"

# Name of the project-local configuration file
CONFIG_FILE_NAME = ".filescavengerrc"

DEFAULT_BATCH_SIZE = 100
DEFAULT_SETTLE_DELAY = 0.8
DEFAULT_READ_CONCURRENCY = 16
DEFAULT_WATCH_INTERVAL = 1.0


class Settings:
    """Settings loader with environment variable support."""

    def __init__(self, env_path: str | Path | None = None):
        """Initialize settings by loading a .env file.

        Args:
            env_path: Explicit .env location (default: .env in the working directory)
        """
        load_dotenv(env_path if env_path is not None else Path.cwd() / ".env")

    @staticmethod
    def _int_env(name: str, default: int) -> int:
        raw = os.getenv(name)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            return default
        return value if value > 0 else default

    @staticmethod
    def _float_env(name: str, default: float) -> float:
        raw = os.getenv(name)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError:
            return default
        return value if value >= 0 else default

    @property
    def batch_size(self) -> int:
        """Get number of candidate files processed per batch.

        Returns:
            Positive batch size (SCAVENGER_BATCH_SIZE, default 100)
        """
        return self._int_env("SCAVENGER_BATCH_SIZE", DEFAULT_BATCH_SIZE)

    @property
    def settle_delay(self) -> float:
        """Get the debounce delay applied after a toggle.

        Returns:
            Delay in seconds (SCAVENGER_SETTLE_DELAY, default 0.8)
        """
        return self._float_env("SCAVENGER_SETTLE_DELAY", DEFAULT_SETTLE_DELAY)

    @property
    def read_concurrency(self) -> int:
        """Get the maximum number of concurrent file content reads."""
        return self._int_env("SCAVENGER_READ_CONCURRENCY", DEFAULT_READ_CONCURRENCY)

    @property
    def trash_path(self) -> str:
        """Get trash directory path (relative paths resolve against the project root).

        Returns:
            Path to .scavenger_trash directory
        """
        return os.getenv("SCAVENGER_TRASH_PATH", ".scavenger_trash")

    @property
    def watch_interval(self) -> float:
        """Get the deletion polling interval used by the watch command."""
        return self._float_env("SCAVENGER_WATCH_INTERVAL", DEFAULT_WATCH_INTERVAL)


# Singleton instance
_settings = None


def get_settings() -> Settings:
    """Get or create singleton Settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
