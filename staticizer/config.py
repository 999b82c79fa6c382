"""Configuration management for Staticizer.

Loads environment variables and provides centralized config access.
"""
import codecs
import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

__version__ = "1.0.0"

DEFAULT_EXCLUDED_DIRS = [
    'build', 'target', 'out', 'bin', '.gradle', '.idea',
    'node_modules', 'vendor', 'third_party', 'generated',
    '.git', '.staticizer_trash',
]

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading .env file.

        Args:
            env_path: Optional explicit .env file (defaults to the project root .env)
        """
        if env_path is None:
            project_root = Path(__file__).parent.parent
            env_path = project_root / ".env"
        load_dotenv(env_path)

        self._validate()

    def _validate(self):
        """Validate values that would otherwise fail late, mid-run.

        Raises:
            ValueError: If the encoding is unknown, a flag is not a boolean,
                or the source glob is empty
        """
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(
                f"STATICIZER_ENCODING '{self.encoding}' is not a known codec."
            )

        if not self.source_glob.strip():
            raise ValueError("STATICIZER_SOURCE_GLOB must not be empty.")

        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"STATICIZER_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, "
                f"got '{self.log_level}'."
            )

        # Read the flags once so malformed values surface at load time
        self._flag("STATICIZER_TRACK_RECEIVER", False)
        self._flag("STATICIZER_SEED_OVERRIDABLE", False)

    @staticmethod
    def _flag(variable: str, default: bool) -> bool:
        raw = os.getenv(variable)
        if raw is None or raw.strip() == "":
            return default
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise ValueError(f"{variable} must be a boolean, got '{raw}'.")

    @property
    def source_glob(self) -> str:
        """Get the glob used to discover Java sources.

        Returns:
            Glob pattern relative to the project root
        """
        return os.getenv("STATICIZER_SOURCE_GLOB", "**/*.java")

    @property
    def excluded_dirs(self) -> List[str]:
        """Get directory names skipped during discovery.

        Returns:
            List of directory names
        """
        raw = os.getenv("STATICIZER_EXCLUDED_DIRS")
        if raw is None:
            return list(DEFAULT_EXCLUDED_DIRS)
        return [part.strip() for part in raw.split(",") if part.strip()]

    @property
    def encoding(self) -> str:
        """Get the source file encoding."""
        return os.getenv("STATICIZER_ENCODING", "utf-8")

    @property
    def trash_path(self) -> str:
        """Get backup directory path.

        Returns:
            Path to .staticizer_trash directory
        """
        return os.getenv("STATICIZER_TRASH_PATH", ".staticizer_trash")

    @property
    def track_receiver(self) -> bool:
        """Whether an explicit this/super makes a method instance-dependent."""
        return self._flag("STATICIZER_TRACK_RECEIVER", False)

    @property
    def seed_overridable(self) -> bool:
        """Whether overridable instance methods count as instance-dependent."""
        return self._flag("STATICIZER_SEED_OVERRIDABLE", False)

    @property
    def log_level(self) -> str:
        """Get the project logger level name."""
        return os.getenv("STATICIZER_LOG_LEVEL", "WARNING").upper()


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached Config so the next get_config() reloads the environment."""
    global _config
    _config = None
