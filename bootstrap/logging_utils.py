"""Logging for bootstrap runs.

Every run logs to two places:
- the console (stdout), message only, so step output reads like a script
- a rotating log file with the standard timestamped format, so a run
  interrupted mid-way can be reviewed afterwards

If the log file cannot be opened the run continues with console output only
and the problem is reported on stderr.
"""

from __future__ import annotations

from logging import (
    Logger, Formatter, StreamHandler, getLogger, DEBUG, INFO, WARNING
)
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
import sys
import subprocess

BYTES_PER_MB = 1024 * 1024

# Default log configuration
DEFAULT_LOG_MAX_BYTES = 5 * BYTES_PER_MB  # 5 MB
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = INFO
LOGGER_NAME = "server_bootstrap"

# Format: timestamp - severity - logger - message
STANDARD_LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"
STANDARD_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_LOG_FORMAT = "%(message)s"


def get_standard_formatter() -> Formatter:
    """Get the standard formatter for log files.

    Returns:
        Configured Formatter instance
    """
    return Formatter(STANDARD_LOG_FORMAT, STANDARD_DATE_FORMAT)


def add_rotating_file_handler(
    logger: Logger,
    log_file: str,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
    level: int = DEBUG
) -> bool:
    """Attach a rotating file handler to ``logger``.

    Args:
        logger: Logger to attach to
        log_file: Path to log file, parent directories are created
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of backup files to keep
        level: Level for the file handler

    Returns:
        True if the handler is attached (or already was), False if the
        file could not be opened
    """
    log_path = Path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Error creating log directory {log_path.parent}: {e}", file=sys.stderr)
        return False

    log_file_path = str(log_path.resolve())
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == log_file_path:
            return True

    try:
        handler = RotatingFileHandler(log_file_path, maxBytes=max_bytes, backupCount=backup_count)
    except OSError as e:
        print(f"Error opening log file {log_file_path}: {e}", file=sys.stderr)
        return False

    handler.setLevel(level)
    handler.setFormatter(get_standard_formatter())
    logger.addHandler(handler)
    return True


def get_bootstrap_logger(
    log_file: Optional[str] = None,
    verbose: bool = False,
    name: str = LOGGER_NAME,
    console_output: bool = True
) -> Logger:
    """Get the logger used by the runner and the steps.

    Args:
        log_file: Optional path to a rotating log file
        verbose: Log commands and check details (DEBUG) on the console
        name: Logger name
        console_output: Whether to print to stdout

    Returns:
        Configured Logger instance

    Example:
        logger = get_bootstrap_logger('/var/log/server_bootstrap/bootstrap.log')
        logger.info('  ✓ Firewall configured')
    """
    logger = getLogger(name)
    logger.setLevel(DEBUG)
    logger.propagate = False

    console_level = DEBUG if verbose else DEFAULT_LOG_LEVEL
    if console_output:
        console = None
        for h in logger.handlers:
            if isinstance(h, StreamHandler) and not isinstance(h, RotatingFileHandler):
                if getattr(h, "stream", None) is sys.stdout:
                    console = h
                    break
        if console is None:
            console = StreamHandler(sys.stdout)
            console.setFormatter(Formatter(CONSOLE_LOG_FORMAT))
            logger.addHandler(console)
        console.setLevel(console_level)

    if log_file:
        add_rotating_file_handler(logger, log_file)

    return logger


def get_logger() -> Logger:
    """Return the shared bootstrap logger without touching its handlers."""
    return getLogger(LOGGER_NAME)


def log_subprocess_result(
    logger: Logger,
    action: str,
    result: subprocess.CompletedProcess[str],
    success_level: int = DEBUG,
    failure_level: int = WARNING
) -> bool:
    """Log concise command result details and return success state."""
    if result.returncode == 0:
        logger.log(success_level, f"  ✓ {action}")
        return True

    logger.log(failure_level, f"  ⚠ {action} failed: {summarize_stderr(result)}")
    return False


def summarize_stderr(result: subprocess.CompletedProcess[str], max_lines: int = 3) -> str:
    stderr_raw = result.stderr or ""
    if isinstance(stderr_raw, bytes):
        stderr_raw = stderr_raw.decode(errors="replace")
    stderr = stderr_raw.strip().splitlines()
    if not stderr:
        return f"exit code {result.returncode}"
    details = " | ".join(stderr[:max_lines])
    if len(stderr) > max_lines:
        details += " | ..."
    return details
