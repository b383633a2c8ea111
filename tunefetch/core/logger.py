"""
Logging configuration for tunefetch.

This module sets up the logging system with multiple outputs:
    - Console: compact colored messages, tqdm-compatible
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - server_failures_<ts>.log: One entry per transport failure, naming the
      mirror that failed and the path that was requested

File outputs are only created when a log directory is given. Library code
never configures logging; it only obtains loggers via get_logger().

Usage:
    from tunefetch.core.logger import setup_logging, get_logger

    setup_logging(log_dir)  # Call once at startup (CLI does this)
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Fetching trending page 0")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

import colorama
from colorama import Fore, Style
from tqdm import tqdm


LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
SERVER_FAILURES_FILENAME = "server_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name for console output.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bright Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Style.BRIGHT + Fore.RED,
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format as '<LEVEL>: <message>' with a colored level name."""
        levelname = record.levelname
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, Fore.WHITE)
            levelname = f"{color}{levelname}{Style.RESET_ALL}"
        return f"{levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    The CLI shows a progress bar while walking all pages of a listing;
    tqdm.write() prints above the active bar instead of through it.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ServerFailureHandler(logging.Handler):
    """
    Handler that captures mirror transport failures for the failures report.

    Writes one entry per failure to server_failures_<ts>.log:

        2026-10-18 10:42:01 https://invidious.example.org/api/v1
        /search?q=chill&type=music&region=NP&page=0&fields=...
        ClientConnectorError: Cannot connect to host ...

    The handler looks for these extra fields in log records:
        - 'failed_server': Base URL of the mirror
        - 'failed_path': Requested path
        - 'failed_reason': Error description

    Records without 'failed_server' are ignored. Use log_server_failure()
    to emit records with the right fields.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "failed_server"):
            return

        if self.report_file is None:
            return

        try:
            timestamp = datetime.fromtimestamp(record.created).strftime(FILE_DATE_FORMAT)
            server = getattr(record, "failed_server", "")
            path = getattr(record, "failed_path", "")
            reason = getattr(record, "failed_reason", "")

            self.report_file.write(f"{timestamp} {server}\n")
            self.report_file.write(f"{path}\n")
            self.report_file.write(f"{reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(
    log_dir: Path | None = None,
    level: str = "INFO",
    colored_output: bool = True
) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any fetch is issued.

    Args:
        log_dir: Directory where log files will be created. None disables
                 every file output and keeps only the console handler.
        level: Console log level name. File logs always capture DEBUG.
        colored_output: Color level names on the console.

    Behavior:
        1. Configure root logger level to DEBUG and close existing handlers
        2. Add the console handler (TqdmLoggingHandler) at the given level
        3. If log_dir is given, create it and add:
           - full log file handler (DEBUG)
           - error log file handler (ERROR+ via ErrorOnlyFilter)
           - server failures report handler
    """
    colorama.init()
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    shutdown_logging()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(ColoredConsoleFormatter(use_colors=colored_output))
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    full_log_path = log_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = log_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_path = log_dir / f"{SERVER_FAILURES_FILENAME}_{timestamp}.log"
    failures_handler = ServerFailureHandler(failures_path)
    failures_handler.open()
    root_logger.addHandler(failures_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().
    """
    return logging.getLogger(name)


def log_server_failure(
    logger: logging.Logger,
    server: str,
    path: str,
    error: BaseException
) -> None:
    """
    Log a transport failure against one mirror.

    Logs a WARNING and attaches the extra fields that ServerFailureHandler
    uses to write the failures report.

    Args:
        logger: The logger to use for the message.
        server: Base URL of the mirror that failed.
        path: Path that was requested.
        error: The transport exception.

    Example:
        log_server_failure(logger, pool.active, "/trending?...", exc)
    """
    reason = f"{type(error).__name__}: {error}"
    logger.warning(
        f"Server {server} failed: {reason}",
        extra={
            "failed_server": server,
            "failed_path": path,
            "failed_reason": reason,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close, and remove every handler on the root logger.

    Typically called in a finally block at CLI exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root_logger.removeHandler(handler)
