"""Logging helpers for :mod:`somafm_tui`."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

__all__ = ["configure_logging", "get_log_file_path", "get_logger"]

_ENV_LEVEL = "SOMAFM_TUI_LOG_LEVEL"
_ENV_FILE = "SOMAFM_TUI_LOG_FILE"
_DEFAULT_LOG_PATH = Path.home() / ".cache" / "somafm_tui.log"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _create_formatter() -> logging.Formatter:
    return logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)


def _coerce_level(value: str) -> int:
    """Return a logging level derived from *value*."""

    normalized = value.strip().upper()
    if normalized.isdigit():
        level = int(normalized)
        if 0 <= level <= logging.CRITICAL:
            return level
    return getattr(logging, normalized, logging.INFO)


def _apply_log_level(logger: logging.Logger, level: int) -> None:
    """Update the logger and all attached handlers to ``level``."""

    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.setLevel(level)


def _configure_file_logging(
    logger: logging.Logger,
    formatter: logging.Formatter,
    level: int,
    destination: Optional[str],
) -> None:
    """Attach or update a file handler based on ``destination``."""

    existing: Optional[logging.Handler] = getattr(
        configure_logging, "_file_handler", None
    )
    if existing is not None:
        logger.removeHandler(existing)
        existing.close()
        configure_logging._file_handler = None  # type: ignore[attr-defined]

    if not destination:
        configure_logging._log_path = None  # type: ignore[attr-defined]
        return

    log_path = Path(destination).expanduser()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf8")
    except OSError:
        logger.warning("Failed to set up file logging at %s", log_path)
        configure_logging._log_path = None  # type: ignore[attr-defined]
        return

    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)
    configure_logging._file_handler = file_handler  # type: ignore[attr-defined]
    configure_logging._log_path = log_path  # type: ignore[attr-defined]
    logger.debug("File logging enabled at %s", log_path)


def _set_console_handler(logger: logging.Logger, enabled: bool) -> None:
    """Attach or detach the stderr handler.

    The handler is detached while the Textual UI owns the terminal so log
    lines do not tear the rendered frame.
    """

    handler: Optional[logging.Handler] = getattr(
        configure_logging, "_stream_handler", None
    )
    if enabled:
        if handler is None:
            handler = logging.StreamHandler()
            handler.setFormatter(_create_formatter())
            configure_logging._stream_handler = handler  # type: ignore[attr-defined]
        if handler not in logger.handlers:
            logger.addHandler(handler)
        return
    if handler is not None and handler in logger.handlers:
        logger.removeHandler(handler)


def configure_logging(
    *,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    console: Optional[bool] = None,
) -> logging.Logger:
    """Configure the package logger if it hasn't been set up yet.

    Subsequent calls only adjust what is passed explicitly: *level* and
    *log_file* fall back to ``SOMAFM_TUI_LOG_LEVEL`` / ``SOMAFM_TUI_LOG_FILE``
    and *console* toggles the stderr handler.
    """

    logger = logging.getLogger("somafm_tui")

    configured = getattr(configure_logging, "_configured", False)
    env_level = os.getenv(_ENV_LEVEL)
    env_file = os.getenv(_ENV_FILE)

    if configured:
        base_level = getattr(configure_logging, "_level", logger.level or logging.INFO)
        if level is not None:
            log_level = _coerce_level(level)
        elif env_level is not None:
            log_level = _coerce_level(env_level)
        else:
            log_level = base_level
    else:
        log_level = _coerce_level(level or env_level or "INFO")

    formatter = _create_formatter()
    if not configured:
        logger.propagate = False
        _set_console_handler(logger, True if console is None else console)

        if log_file is not None:
            file_destination = log_file
        elif env_file is not None:
            file_destination = env_file
        else:
            file_destination = str(_DEFAULT_LOG_PATH)
        _configure_file_logging(logger, formatter, log_level, file_destination)
        configure_logging._configured = True  # type: ignore[attr-defined]
    else:
        if console is not None:
            _set_console_handler(logger, console)
        if log_file is not None:
            _configure_file_logging(logger, formatter, log_level, log_file)

    _apply_log_level(logger, log_level)
    configure_logging._level = log_level  # type: ignore[attr-defined]
    return logger


def get_log_file_path() -> Optional[Path]:
    """Return the active log file path, if file logging is enabled."""

    configure_logging()
    return getattr(configure_logging, "_log_path", None)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger."""

    base = configure_logging()
    if not name or name == base.name:
        return base
    if name.startswith(base.name + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{base.name}.{name}")
