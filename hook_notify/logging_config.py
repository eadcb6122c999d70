"""
Logging configuration for the hook scripts

Hooks must not write to stdout (the hook system reads it), so everything
goes to an append-only debug log file.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGER = "hook_notify"


@contextmanager
def debug_log(
    log_file: Path,
    log_level: str = "INFO",
    enabled: bool = True
) -> Iterator[Optional[logging.Handler]]:
    """
    Attach a file handler to the package logger for the duration of the block.

    The handler is removed and closed on exit. When ``enabled`` is false, or
    the log file cannot be opened, nothing is attached.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not enabled:
        yield None
        return

    try:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as e:
        logger.warning(f"Cannot open debug log {log_file}: {e}")
        yield None
        return

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    previous_level = logger.level
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.addHandler(handler)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)
        handler.close()
