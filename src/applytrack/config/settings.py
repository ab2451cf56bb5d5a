"""Centralized configuration for applytrack.

Loads configuration from a .env file and the environment and provides
typed access to settings. Invalid values produce clear ConfigError
messages.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo

from ..rollups.goals import DEFAULT_DAILY_GOAL, MAX_DAILY_GOAL

__all__ = [
    "ConfigError",
    "Settings",
    "generate_example_env",
    "get_settings",
    "load_env_file",
    "load_settings",
]

ENV_PREFIX = "APPLYTRACK_"


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Settings for applytrack.

    Attributes
    ----------
    db_path : Path
        SQLite database holding events, live counter and preferences
    timezone : str
        IANA timezone that defines calendar days
    user_id : str
        User scope for stored rows
    daily_goal : int
        Default daily goal when the user has not stored one
    retention_days : int
        Committed events older than this are pruned (0 keeps everything)
    log_level : str
        Logging level
    log_dir : Path | None
        Directory for JSON log files
    """

    db_path: Path = Path("applytrack.db")
    timezone: str = "UTC"
    user_id: str = "local"
    daily_goal: int = DEFAULT_DAILY_GOAL
    retention_days: int = 365
    log_level: str = "INFO"
    log_dir: Path | None = None

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)

        if self.log_dir and isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)

        if not self.db_path or not str(self.db_path):
            raise ConfigError("db_path is required. Set APPLYTRACK_DB_PATH (e.g., APPLYTRACK_DB_PATH=applytrack.db)")

        try:
            ZoneInfo(self.timezone)
        except Exception as exc:
            raise ConfigError(
                f"Invalid timezone '{self.timezone}'. "
                "Set APPLYTRACK_TZ to an IANA name such as Europe/Brussels or America/New_York"
            ) from exc

        if not self.user_id:
            raise ConfigError("user_id must not be empty (APPLYTRACK_USER)")

        if not 1 <= self.daily_goal <= MAX_DAILY_GOAL:
            raise ConfigError(f"daily_goal must be between 1 and {MAX_DAILY_GOAL}, got {self.daily_goal}")

        if self.retention_days < 0:
            raise ConfigError(f"retention_days must be >= 0, got {self.retention_days}")

        self.log_level = self.log_level.upper()
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> Settings:
        """Load settings from environment.

        Loads from .env file if present, then reads APPLYTRACK_* variables.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)

        Returns
        -------
        Settings
            Loaded settings

        Raises
        ------
        ConfigError
            If settings are invalid
        """
        if env_file is None:
            env_file = Path(".env")

        if isinstance(env_file, str):
            env_file = Path(env_file)

        if env_file.exists():
            load_env_file(env_file)

        env = os.environ
        try:
            return cls(
                db_path=Path(env.get(f"{ENV_PREFIX}DB_PATH", "applytrack.db")),
                timezone=env.get(f"{ENV_PREFIX}TZ", "UTC"),
                user_id=env.get(f"{ENV_PREFIX}USER", "local"),
                daily_goal=int(env.get(f"{ENV_PREFIX}DAILY_GOAL", str(DEFAULT_DAILY_GOAL))),
                retention_days=int(env.get(f"{ENV_PREFIX}RETENTION_DAYS", "365")),
                log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO"),
                log_dir=Path(env[f"{ENV_PREFIX}LOG_DIR"]) if f"{ENV_PREFIX}LOG_DIR" in env else None,
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Existing environment variables win over the file.
    """
    with open(env_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                # Remove quotes
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ.setdefault(key, value)


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings from environment and keep them as the current settings.

    Raises
    ------
    ConfigError
        If settings are invalid
    """
    global _settings
    _settings = Settings.from_env(env_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings.

    Raises
    ------
    ConfigError
        If settings not loaded
    """
    if _settings is None:
        raise ConfigError("Settings not loaded. Call load_settings() first.")
    return _settings


def generate_example_env(output_path: Path | None = None) -> str:
    """Generate example .env file with all settings.

    Parameters
    ----------
    output_path
        Optional path to write the file to

    Returns
    -------
    str
        Example .env contents
    """
    example = f"""# applytrack configuration
# Copy this to .env and adjust values

# SQLite database file (default: applytrack.db)
APPLYTRACK_DB_PATH=applytrack.db

# Timezone that defines "today" (default: UTC)
# Examples: UTC, America/New_York, Europe/Brussels
APPLYTRACK_TZ=UTC

# User scope for stored rows (default: local)
APPLYTRACK_USER=local

# Daily goal used until one is stored (1-{MAX_DAILY_GOAL}, default: {DEFAULT_DAILY_GOAL})
APPLYTRACK_DAILY_GOAL={DEFAULT_DAILY_GOAL}

# Days of committed history to keep, 0 keeps everything (default: 365)
APPLYTRACK_RETENTION_DAYS=365

# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
APPLYTRACK_LOG_LEVEL=INFO

# Directory for JSON log files (optional, console only if not set)
# APPLYTRACK_LOG_DIR=logs
"""

    if output_path:
        output_path.write_text(example, encoding="utf-8")

    return example
