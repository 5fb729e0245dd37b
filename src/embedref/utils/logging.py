"""Logging setup for the ``embedref`` command line."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import TextIO

__all__ = ["default_log_dir", "setup_logging"]

LOG_DIR_ENV = "EMBEDREF_LOG_DIR"
LOG_FILE_NAME = "embedref.log"
_QUIET_LOGGERS = ("markdown_it", "ruamel")
_CONSOLE_FORMAT = "embedref: %(levelname)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_log_path: Path | None = None


def default_log_dir() -> Path:
    override = os.environ.get(LOG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".embedref" / "logs"


def setup_logging(
    level: int = logging.WARNING,
    *,
    log_dir: Path | str | None = None,
    stream: TextIO | None = None,
    force: bool = False,
) -> Path:
    """Route records to stderr and to ``embedref.log`` under ``log_dir``.

    The console only shows ``level`` and above; the file keeps debug records.
    Repeated calls are no-ops unless ``force`` is set.
    """

    global _log_path
    if _log_path is not None and not force:
        return _log_path

    directory = Path(log_dir).expanduser() if log_dir else default_log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / LOG_FILE_NAME

    console = logging.StreamHandler(stream)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    logfile = logging.handlers.RotatingFileHandler(path, maxBytes=256_000, backupCount=1, encoding="utf-8")
    logfile.setLevel(logging.DEBUG)
    logfile.setFormatter(logging.Formatter(_FILE_FORMAT))

    logging.basicConfig(level=logging.DEBUG, handlers=[console, logfile], force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _log_path = path
    return path
