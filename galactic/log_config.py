"""Logging setup for applications hosting Galactic.

Log files are written to `log_dir` (default from GALACTIC_LOG_DIR),
rotated at midnight by TimedRotatingFileHandler.

- Retention: `retention_days` rotated files (default 30).
- Level: `level` (default INFO).
"""
from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler

from .env_settings import get_env

_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LOG_FILE = "galactic.log"

# Installed handlers, tracked so reconfiguration replaces them.
_file_handler: logging.Handler | None = None
_console_handler: logging.Handler | None = None


def _ensure_log_dir(log_dir: str | None) -> str:
    path = log_dir or get_env().log_dir
    os.makedirs(path, exist_ok=True)
    return path


def setup_logging(
    level: str = "INFO",
    retention_days: int = 30,
    log_dir: str | None = None,
) -> None:
    """Configure the root logger.

    - File handler: daily rotation, `retention_days` backups.
    - Console handler: stderr.
    """
    global _file_handler, _console_handler

    level_str = (level or "INFO").strip().upper()
    if level_str not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level_str = "INFO"
    log_level = getattr(logging, level_str, logging.INFO)

    retention_days = max(1, min(365, int(retention_days or 30)))

    root = logging.getLogger()

    if _file_handler and _file_handler in root.handlers:
        root.removeHandler(_file_handler)
        _file_handler.close()
    if _console_handler and _console_handler in root.handlers:
        root.removeHandler(_console_handler)

    path = _ensure_log_dir(log_dir)
    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)

    fh = TimedRotatingFileHandler(
        os.path.join(path, _LOG_FILE),
        when="midnight",
        interval=1,
        backupCount=retention_days,
        encoding="utf-8",
        utc=True,
    )
    fh.suffix = "%Y-%m-%d"
    fh.setLevel(log_level)
    fh.setFormatter(formatter)
    _file_handler = fh

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    _console_handler = ch

    root.setLevel(log_level)
    root.addHandler(fh)
    root.addHandler(ch)

    # Quiet chatty client libraries
    for name in ("httpx", "httpcore", "ldap3", "msal"):
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger("galactic").info(
        "Logging configured: level=%s, retention=%d days, dir=%s",
        level_str, retention_days, path,
    )


def setup_logging_from_env() -> None:
    env = get_env()
    setup_logging(level=env.log_level, retention_days=env.log_retention_days, log_dir=env.log_dir)
