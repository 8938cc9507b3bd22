"""
Shared utilities for Drive Sync.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

CONSOLE_LOG_FORMAT = "%(levelname)s: %(message)s"
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_path: Optional[Path] = None, verbose: bool = False):
    """
    Configure logging for command-line use.

    Console gets WARNING and up (DEBUG with verbose); the log file, if any,
    gets everything from the drivesync package.
    """
    root = logging.getLogger("drivesync")
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
    root.addHandler(console)

    if log_path:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
        root.addHandler(file_handler)


def format_timestamp_ms(epoch_ms: int) -> str:
    """Local time for display, or "never" for 0."""
    if not epoch_ms:
        return "never"
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M")


def format_size(size_bytes: float) -> str:
    """Format bytes as human readable string."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} PB"
