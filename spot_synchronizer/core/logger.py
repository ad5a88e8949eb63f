"""
Logging configuration for spot-synchronizer.

This module sets up the logging system with multiple outputs:
    - Console: Real-time progress with tqdm-compatible formatting
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only ERROR and CRITICAL level messages
    - sync_failures.log: Synchronized playlists that could not be
      discovered or resynchronized, with the reason

The logging system follows the principle: everything to screen is also saved
to file, then filtered into specialized files.

Log File Locations:
    All log files are created in <output directory>/logs, one set per run
    (file names carry the run timestamp).

Usage:
    from spot_synchronizer.core.logger import setup_logging, get_logger

    setup_logging(output_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Discovering synchronized playlists")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("spotipy", "urllib3", "PIL")


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    tqdm progress bars write to stderr and use carriage returns to update
    in-place. This handler uses tqdm.write() which coordinates with active
    progress bars, so messages appear above them.
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


class SyncFailureHandler(logging.Handler):
    """
    Handler that captures playlist-level failures for the sync report file.

    Listens for log records carrying sync failure information and writes
    them to sync_failures.log in a simple, human-readable format:

        Road Trip Mix
        spotify:playlist:37i9dQZF1DXcBWIGoYBM5M
        Cover carries no synchronization definition

    The handler looks for specific extra fields in log records:
        - 'sync_failed_playlist_name': The playlist's display name
        - 'sync_failed_playlist_id': The Spotify playlist ID
        - 'sync_failed_reason': Why the playlist was skipped

    Only records containing these fields are written to the report.
    Use log_sync_failure() to emit such records.

    Attributes:
        report_path: Path to the sync_failures.log file.
        report_file: Open file handle (set by open()).
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "sync_failed_playlist_id"):
            return

        if self.report_file is None:
            return

        try:
            name = getattr(record, "sync_failed_playlist_name", "Unknown")
            playlist_id = getattr(record, "sync_failed_playlist_id", "")
            reason = getattr(record, "sync_failed_reason", "")

            self.report_file.write(f"{name}\n")
            self.report_file.write(f"spotify:playlist:{playlist_id}\n")
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


def setup_logging(output_dir: Path) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        output_dir: Directory where log files will be created.
                    Logs are stored in a 'logs' subdirectory.

    Behavior:
        1. Create output_dir/logs if it doesn't exist
        2. Generate timestamp for this run's log files
        3. Configure root logger level to DEBUG, dropping old handlers
        4. Console handler (TqdmLoggingHandler, INFO, colored)
        5. Full log file handler (DEBUG)
        6. Error log file handler (ERROR+ via ErrorOnlyFilter)
        7. Sync failure report handler
        8. Quiet spotipy/urllib3/PIL debug chatter

    Thread Safety:
        This function is NOT thread-safe. Call it once from the main
        thread before starting any worker threads.
    """
    logs_dir = output_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_log_path = logs_dir / f"log_full_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = logs_dir / f"log_errors_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    sync_failures_path = logs_dir / f"sync_failures_{timestamp}.log"
    sync_handler = SyncFailureHandler(sync_failures_path)
    sync_handler.open()
    root_logger.addHandler(sync_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called will have no
        handlers and will not produce output.
    """
    return logging.getLogger(name)


def log_sync_failure(
    logger: logging.Logger,
    playlist_name: str,
    playlist_id: str,
    reason: str
) -> None:
    """
    Log a synchronized playlist that was skipped or failed.

    Logs an ERROR level message and attaches the extra fields that
    SyncFailureHandler uses to write to sync_failures.log.

    Example:
        log_sync_failure(
            logger,
            playlist_name="Road Trip Mix",
            playlist_id="37i9dQZF1DXcBWIGoYBM5M",
            reason="Cover carries no synchronization definition"
        )
    """
    logger.error(
        f"Skipping synchronized playlist '{playlist_name}': {reason}",
        extra={
            "sync_failed_playlist_name": playlist_name,
            "sync_failed_playlist_id": playlist_id,
            "sync_failed_reason": reason,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and remove every handler of the root logger.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except Exception:
            pass
        root_logger.removeHandler(handler)
