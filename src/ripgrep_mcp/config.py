"""Environment-variable-based configuration."""

import logging
import math
import os
from pathlib import Path

from ripgrep_mcp.errors import ConfigError

_DEFAULT_TIMEOUT = "30.0"
_DEFAULT_MAX_OUTPUT_BYTES = str(10 * 1024 * 1024)


def get_files_root() -> Path:
    """Return the search root from FILES_ROOT, defaulting to the working directory."""
    raw = os.environ.get("FILES_ROOT")
    if not raw:
        return Path.cwd()
    return Path(raw).expanduser()


def get_log_level() -> str:
    """Return the logging level from LOG_LEVEL."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if level == "WARN":
        level = "WARNING"
    if not isinstance(logging.getLevelName(level), int):
        return "INFO"
    return level


def get_rg_path() -> str:
    """Return the ripgrep executable name or path from RG_PATH."""
    return os.environ.get("RG_PATH", "rg")


def get_search_timeout() -> float:
    """Return the per-search wall-clock timeout in seconds from RG_TIMEOUT.

    Raises ConfigError unless the value is a positive number.
    """
    raw = os.environ.get("RG_TIMEOUT", _DEFAULT_TIMEOUT)
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigError(f"RG_TIMEOUT must be a number of seconds: {raw!r}") from None
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigError(f"RG_TIMEOUT must be a positive number of seconds: {raw!r}")
    return timeout


def get_max_output_bytes() -> int:
    """Return the stdout capture cap from RG_MAX_OUTPUT_BYTES.

    Raises ConfigError unless the value is a positive integer.
    """
    raw = os.environ.get("RG_MAX_OUTPUT_BYTES", _DEFAULT_MAX_OUTPUT_BYTES)
    try:
        limit = int(raw)
    except ValueError:
        raise ConfigError(f"RG_MAX_OUTPUT_BYTES must be an integer: {raw!r}") from None
    if limit <= 0:
        raise ConfigError(f"RG_MAX_OUTPUT_BYTES must be positive: {raw!r}")
    return limit
