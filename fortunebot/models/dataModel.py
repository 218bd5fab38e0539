"""
dataModel.py

This module defines the data models and schemas used throughout fortunebot.
The models leverage Pydantic for validation and type safety.

Features:
- Enum classes for run modes, fetch error kinds and cache clear outcomes.
- Models for the persisted cache record and fortune log entries.
- Resolved configuration values tagged with their provenance.
- A discriminated result type for fortune generation.
- The parsed command-line options and the per-invocation path context.

Usage:
Import these models to validate and structure data used in the application.
"""

from pydantic import BaseModel, Field
from typing import Optional
from pathlib import Path
from enum import Enum


class RunMode(Enum):
    """
    Enum for the mutually exclusive invocation modes.
    """

    NORMAL = "normal"
    SHOW_LOG = "show-log"
    LOG_RANDOM = "log-random"
    PREFETCH_WORKER = "prefetch-worker"


class FetchErrorKind(Enum):
    """Classes of failure a fortune fetch can end in.

    Attributes:
        NO_KEY: No API key was resolved; no request was made
        TIMEOUT: The request exceeded the configured timeout
        HTTP_STATUS: The endpoint answered with a non-2xx status
        EMPTY_RESPONSE: The response carried no usable text
        MALFORMED_RESPONSE: The response body was not valid JSON
        NETWORK: Any other transport failure
    """

    NO_KEY = "no-key"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http-status"
    EMPTY_RESPONSE = "empty-response"
    MALFORMED_RESPONSE = "malformed-response"
    NETWORK = "network"


class ClearResult(Enum):
    """
    Outcome of deleting the cache file.
    """

    CLEARED = 1
    ABSENT = 2
    FAILED = 3


class CachedFortune(BaseModel):
    """
    The single cached fortune record.

    Attributes:
        fortune (str): The fortune text as printed to the user.
        timestamp (float): Epoch seconds at which the fortune was cached.
    """

    fortune: str = Field(..., min_length=1, description="Cached fortune text.")
    timestamp: float = Field(..., description="Epoch seconds when cached.")


class LogEntry(BaseModel):
    """
    One line of the append-only fortune log.

    Attributes:
        timestamp (int): Epoch seconds at which the fortune was logged.
        fortune (str): The fortune text.
    """

    timestamp: int
    fortune: str


class ConfigFile(BaseModel):
    """
    Contents of the optional on-disk JSON config file.

    Every field is optional; unknown keys are ignored.
    """

    api_key: Optional[str] = None
    default_prompt: Optional[str] = None
    model: Optional[str] = None


class ResolvedValue(BaseModel):
    """A configuration value and the source that supplied it.

    Attributes:
        value: The resolved value (may be empty for the API key)
        source: Human readable provenance, e.g. "env OPENAI_API_KEY"
    """

    value: str
    source: str


class ResolvedConfig(BaseModel):
    """Effective prompt, API key and model for one invocation.

    Attributes:
        prompt: Resolved prompt
        api_key: Resolved API key ("" with source "none found" if absent)
        model: Resolved model name
    """

    prompt: ResolvedValue
    api_key: ResolvedValue
    model: ResolvedValue


class FetchError(BaseModel):
    """Description of a failed fortune fetch.

    Attributes:
        kind: The class of failure
        message: Human readable reason
        status_code: HTTP status for HTTP_STATUS failures
        body: Response body for HTTP_STATUS failures
    """

    kind: FetchErrorKind
    message: str
    status_code: Optional[int] = None
    body: Optional[str] = None


class FetchResult(BaseModel):
    """Result of a fortune generation attempt.

    Attributes:
        status: Whether a fortune was produced
        fortune: The fortune text on success, empty otherwise
        error: Failure details when status is False
    """

    status: bool
    fortune: str = ""
    error: Optional[FetchError] = None


class AppPaths(BaseModel):
    """
    Locations of the files fortunebot reads and writes.

    Built once per invocation and handed to each component so that the
    stores can be exercised against any directory.

    Attributes:
        config_file (Path): Optional JSON config file.
        cache_file (Path): Cached fortune record.
        log_file (Path): Append-only fortune log.
        env_file (Optional[Path]): Env file applied at startup, if any.
    """

    config_file: Path
    cache_file: Path
    log_file: Path
    env_file: Optional[Path] = None


class CLIOptions(BaseModel):
    """Parsed command-line options.

    Attributes:
        prompt: Prompt override
        api_key: API key override
        model: Model override
        cache_ttl: Cache TTL in seconds (0 disables caching)
        no_cache: Disable the cache
        clear_cache: Delete the cache before running
        no_prefetch: Disable the background prefetch
        verbose: Verbose output
        quiet: Quiet output; wins over verbose
        show_log: Print the fortune log and exit
        prefetch_worker: Run as the background prefetch worker
        log_random: Print a random fortune from the log
    """

    prompt: str = ""
    api_key: str = ""
    model: str = ""
    cache_ttl: int = 60
    no_cache: bool = False
    clear_cache: bool = False
    no_prefetch: bool = False
    verbose: bool = False
    quiet: bool = False
    show_log: bool = False
    prefetch_worker: bool = False
    log_random: bool = False

    @property
    def is_verbose(self) -> bool:
        """Verbose output is suppressed when quiet is also set."""
        return self.verbose and not self.quiet
