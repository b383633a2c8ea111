"""
Core module for tunefetch.

This module provides the foundational components used throughout the library:
    - exceptions: Outcome taxonomy (end of results, retryable, failed)
    - config: Configuration loading and validation
    - logger: Logging system with console and file outputs

Usage:
    from tunefetch.core import (
        Config, load_config,
        setup_logging, get_logger,
        EndOfResults, RetryableError, FetchFailedError
    )
"""

from tunefetch.core.config import (
    Config,
    LoggingConfig,
    load_config,
    parse_config,
)
from tunefetch.core.exceptions import (
    ConfigError,
    EndOfResults,
    FetchError,
    FetchFailedError,
    RetryableError,
    TuneFetchError,
)
from tunefetch.core.logger import (
    get_logger,
    log_server_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "LoggingConfig",
    "load_config",
    "parse_config",
    # Exceptions
    "TuneFetchError",
    "ConfigError",
    "EndOfResults",
    "FetchError",
    "RetryableError",
    "FetchFailedError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_server_failure",
    "shutdown_logging",
]
