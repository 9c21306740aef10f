"""Debug log file setup for the CLI."""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "[wydo] %(asctime)s %(name)s: %(message)s"
FALLBACK_LOG = Path("/tmp") / "wydo-debug.log"

_handler: logging.Handler | None = None


def log_path(log_dir: Path | str | None) -> Path:
    if log_dir and str(log_dir) != ".":
        return Path(log_dir) / "debug.log"
    return FALLBACK_LOG


def init_logging(log_dir: Path | str | None = None, debug: bool = False) -> Path:
    """Route the ``wydo`` logger to a debug.log file. Returns the file path.

    Calling it again replaces the previous handler.
    """
    global _handler

    path = log_path(log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("wydo")
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler.close()

    _handler = logging.FileHandler(path, encoding="utf-8")
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.debug("Logger initialized: %s", path)
    return path


def close_logging() -> None:
    global _handler

    if _handler is not None:
        logging.getLogger("wydo").removeHandler(_handler)
        _handler.close()
        _handler = None
