"""Logging setup for nfs-automount runs.

Every line is "<YYYY-mm-dd HH:MM:SS> - <LEVEL> - <message>". Informational
lines go to stdout and/or the log file depending on the destination; error
lines always go to stderr as well, so the VM extension agent captures them
even when the log file is unreachable.
"""

import logging
import sys
from pathlib import Path

from nfs_automount.config import LogDestination

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _BelowErrorFilter(logging.Filter):
    """Keep records below ERROR (errors go to stderr instead)."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def setup_logging(
    destination: LogDestination = LogDestination.BOTH,
    log_file: str | Path | None = None,
    verbose: bool = False,
) -> list[logging.Handler]:
    """Configure the root logger for one run.

    Args:
        destination: stdout, file, or both
        log_file: Log file path, required unless destination is stdout
        verbose: Log at DEBUG instead of INFO

    Returns:
        The handlers installed on the root logger
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []

    if destination in (LogDestination.FILE, LogDestination.BOTH):
        if not log_file:
            raise ValueError(f"log_file is required for destination '{destination.value}'")
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, mode="a", encoding="utf-8"))

    if destination in (LogDestination.STDOUT, LogDestination.BOTH):
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.addFilter(_BelowErrorFilter())
        handlers.append(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    handlers.append(stderr_handler)

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=handlers,
        force=True,
    )
    return handlers


__all__ = ["DATE_FORMAT", "LOG_FORMAT", "setup_logging"]
