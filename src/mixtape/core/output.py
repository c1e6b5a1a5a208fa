"""
Unified output system using Loguru.
User-facing messages are written to the log file and printed to stdout.
"""

import sys
import threading
from pathlib import Path

from loguru import logger

_console_lock = threading.Lock()


def setup_loguru(log_file: Path, level: str = "INFO", console_output: bool = False) -> None:
    """
    Configure loguru with a rotating file sink.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        console_output: Also write log records to stderr
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to the log file AND prints to stdout.

    Use this instead of print() for user-facing messages that should also be logged.
    Threads marked with ``silent_logging = True`` only write to the log file.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    silent = getattr(threading.current_thread(), "silent_logging", False)
    if not silent:
        with _console_lock:
            print(message)
