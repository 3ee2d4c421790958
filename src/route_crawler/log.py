"""
Logging setup: coloured console output plus an append-only log file.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import colorlog

log = logging.getLogger("route-crawler")

_LOG_FMT = "%(asctime)s [%(levelname)s] %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def setup_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Configure the crawler logger.

    Args:
        debug: Show DEBUG messages (validation skips, raw API responses) on the console.
        log_file: If given, every message is also appended to this file.
    """
    log.setLevel(logging.DEBUG)
    log.handlers.clear()
    log.propagate = False

    console = colorlog.StreamHandler()
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    console.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s" + _LOG_FMT,
        datefmt=_LOG_DATEFMT,
        log_colors=_LOG_COLORS,
    ))
    log.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        fh.setLevel(logging.DEBUG)  # always capture full detail
        fh.setFormatter(logging.Formatter(_LOG_FMT, datefmt=_LOG_DATEFMT))
        log.addHandler(fh)
