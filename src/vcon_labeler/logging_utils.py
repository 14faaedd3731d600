"""Logging helpers."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Union

LOG_FILE = "vcon_labeler.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
CONSOLE_HANDLER = "vcon_labeler.console"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    log_dir: str = "logs",
    level: Union[int, str] = logging.INFO,
    console: bool = False,
) -> tuple[logging.Logger, str]:
    """Attach a rotating session log in `log_dir`, plus stderr when `console`.

    Calling again with another directory moves the file handler there.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.abspath(os.path.join(log_dir, LOG_FILE))
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    logger = logging.getLogger("vcon_labeler")
    logger.setLevel(_resolve_level(level))

    current = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    if not any(h.baseFilename == log_path for h in current):
        for handler in current:
            logger.removeHandler(handler)
            handler.close()
        handler = RotatingFileHandler(
            log_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8"
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    has_console = any(h.get_name() == CONSOLE_HANDLER for h in logger.handlers)
    if console and not has_console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        stream.set_name(CONSOLE_HANDLER)
        logger.addHandler(stream)

    return logger, log_path
