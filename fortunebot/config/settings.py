"""
settings.py

This module provides application configuration management for fortunebot.

Features:
- Centralized application configuration using Pydantic settings
- Per-user config and data directories resolved with appdirs
- Constants for application-wide use (defaults, file names, the diagnostic tag)
- Construction of the per-invocation path context

Usage:
Import appsettings for application configuration values, and call
paths_resolve() to obtain the file locations for the current run.

Environment:
- Settings can be overridden with FORTUNEBOT_-prefixed environment variables,
  e.g. FORTUNEBOT_REQUEST_TIMEOUT=5 or FORTUNEBOT_BEQUIET=false.
"""

import sys
from pathlib import Path
from typing import Any, Final, Optional
from appdirs import user_config_dir, user_data_dir
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from fortunebot.lib.log import LOG
from fortunebot.models.dataModel import AppPaths

# Console instances for rich output
console: Final[Console] = Console()
errconsole: Final[Console] = Console(stderr=True)

APP_NAME: Final[str] = "fortunebot"

# Prefix on every user-visible diagnostic; text carrying it is never persisted
DIAGNOSTIC_TAG: Final[str] = "[fortunebot]"

DEFAULT_PROMPT: Final[str] = (
    "Generate a very short, funny fortune cookie message about AI, "
    "programmers, or neural networks. Maximum 2 short sentences."
)
DEFAULT_MODEL: Final[str] = "gpt-4o-mini"
CACHE_TTL_DEFAULT: Final[int] = 60

# Per-user directories using appdirs
CONFIG_DIR: Final[Path] = Path(user_config_dir(APP_NAME, ""))
CONFIG_FILE: Final[Path] = CONFIG_DIR / "config.json"
DATA_DIR: Final[Path] = Path(user_data_dir(APP_NAME, ""))
CACHE_FILE: Final[Path] = DATA_DIR / "cache.json"

ENV_FILENAME: Final[str] = "fortunebot.env"
LOG_FILENAME: Final[str] = "fortunebot.log"


class App(BaseSettings):
    """
    Application settings model.

    Settings can be overridden through environment variables with the
    FORTUNEBOT_ prefix.

    Attributes:
        verbose: Verbosity forwarded by a parent process to its prefetch worker
        beQuiet: Suppress internal debug tracing from LOG
        request_timeout: Hard timeout for the generation request, in seconds
        endpoint: Text-generation endpoint URL
        config_file: Override for the JSON config file location
        cache_file: Override for the cache file location
        log_file: Override for the fortune log location
    """

    verbose: bool = False
    beQuiet: bool = True

    # API request timeout in seconds
    request_timeout: float = 15.0
    endpoint: str = "https://api.openai.com/v1/responses"

    config_file: Optional[Path] = None
    cache_file: Optional[Path] = None
    log_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="FORTUNEBOT_",  # Environment variables with this prefix override settings
        case_sensitive=False,  # Allow case-insensitive environment variables
        extra="ignore",
    )

    @field_validator("verbose", mode="before")
    @classmethod
    def verbose_parse(cls, value: Any) -> bool:
        """Only "true" and "1" (any case) switch verbosity on."""
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1"}
        return bool(value)


def program_dir() -> Path:
    """
    Directory holding the running program.

    Returns:
        Path: Parent directory of the invoked script, or the current
        directory if it cannot be determined.
    """
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return Path.cwd()


def paths_resolve(settings: Optional[App] = None) -> AppPaths:
    """
    Build the path context for this invocation.

    Explicit settings overrides win; otherwise the config and cache files
    live in the per-user directories and the log sits beside the program.

    Args:
        settings: Settings to read overrides from (defaults to appsettings)

    Returns:
        AppPaths: The resolved file locations
    """
    settings = settings or appsettings
    return AppPaths(
        config_file=settings.config_file or CONFIG_FILE,
        cache_file=settings.cache_file or CACHE_FILE,
        log_file=settings.log_file or program_dir() / LOG_FILENAME,
    )


def settings_load() -> App:
    """
    Re-read settings from the environment.

    Called after an env file has been applied so that values it set are
    visible to the rest of the run.

    Returns:
        App: The refreshed settings instance
    """
    global appsettings
    appsettings = settings_build()
    return appsettings


def settings_build() -> App:
    """
    Create settings from the environment, falling back to defaults.

    Fields whose FORTUNEBOT_ variable fails validation keep their built-in
    defaults; the remaining variables still apply.

    Returns:
        App: Settings read from the environment
    """
    try:
        return App()
    except ValidationError as e:
        invalid: set[str] = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        LOG(f"Ignoring invalid settings {sorted(invalid)}: {e}")
        defaults: dict[str, Any] = {
            name: App.model_fields[name].default
            for name in invalid
            if name in App.model_fields
        }
        try:
            return App(**defaults)
        except ValidationError:
            return App.model_construct()


# Create the application settings instance
appsettings: App = settings_build()
