"""Base structured logging utilities for the metering layer.

Every metering logger is a child of the shared ``meter`` logger. That base
logger owns one stderr handler (JSON by default) and, optionally, a rotating
file handler attached through :func:`configure_logger`. Its level comes from
``METER_LOG_LEVEL``.

Events are written with :func:`log_event` as a single JSON object per line.
:func:`normalized_log_event` adds the canonical keys ``structured``, ``phase``,
``error_code`` and ``tokens`` so request records can be aggregated regardless
of provider.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Mapping, Optional

from .log_support import JsonFormatter, LogContext


BASE_LOGGER_NAME = "meter"
LOG_LEVEL_VAR = "METER_LOG_LEVEL"

_BASE_LOGGER_ATTR = "_meter_logger_initialized"
_CONSOLE_HANDLER_ATTR = "_meter_console_handler"
_FILE_HANDLER_ATTR = "_meter_file_handler"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_FILE_MAX_BYTES = 10 * 1024 * 1024
_FILE_BACKUPS = 5

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _formatter(json_mode: bool) -> logging.Formatter:
    return JsonFormatter() if json_mode else logging.Formatter(_PLAIN_FORMAT)


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    """Map a level name (case-insensitive) to its constant, or ``default``."""
    if not value:
        return default
    return _LEVELS.get(value.strip().upper(), default)


def _console_handler(level: int, json_mode: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_formatter(json_mode))
    setattr(handler, _CONSOLE_HANDLER_ATTR, True)
    return handler


def _close_quietly(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.removeHandler(handler)
    with contextlib.suppress(Exception):
        handler.close()


def _refresh_console_handlers(logger: logging.Logger, level: int, json_mode: bool) -> None:
    for handler in list(logger.handlers):
        if not getattr(handler, _CONSOLE_HANDLER_ATTR, False):
            continue
        stream = getattr(handler, "stream", None)
        if stream is None or getattr(stream, "closed", False):
            # pytest capture swaps stderr between tests
            _close_quietly(logger, handler)
            logger.addHandler(_console_handler(level, json_mode))
        else:
            handler.setLevel(level)


def _ensure_base_logger(json_mode: bool, level: int) -> logging.Logger:
    """Initialize (once) and return the shared ``meter`` logger."""
    logger = logging.getLogger(BASE_LOGGER_NAME)
    desired = _parse_level(os.getenv(LOG_LEVEL_VAR), default=level)
    if getattr(logger, _BASE_LOGGER_ATTR, False):
        if logger.level != desired:
            logger.setLevel(desired)
        _refresh_console_handlers(logger, desired, json_mode)
        return logger

    logger.setLevel(desired)
    logger.handlers[:] = [_console_handler(desired, json_mode)]
    logger.propagate = False
    setattr(logger, _BASE_LOGGER_ATTR, True)
    return logger


def get_logger(name: str = BASE_LOGGER_NAME, json_mode: bool = True, level: int = logging.INFO) -> logging.Logger:
    """Return a logger attached to the shared ``meter`` hierarchy.

    Names outside the hierarchy are prefixed (``"processing"`` becomes
    ``"meter.processing"``) so every record reaches the managed handler.
    """
    base_logger = _ensure_base_logger(json_mode=json_mode, level=level)
    if name == BASE_LOGGER_NAME:
        return base_logger
    if not name.startswith(BASE_LOGGER_NAME + "."):
        name = f"{BASE_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def _file_handlers(logger: logging.Logger) -> List[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, _FILE_HANDLER_ATTR, False)]


def configure_logger(
    *,
    level: int | str | None = None,
    file_path: Optional[str] = None,
    json_mode: bool = True,
) -> logging.Logger:
    """Reconfigure the shared ``meter`` logger while the process runs.

    ``level`` (a number or a name) is applied to the logger and all of its
    handlers; ``None`` keeps the current level. With ``file_path`` a rotating
    file handler (10 MB, five backups) is attached, or reused when one already
    writes to that path. Without it, the managed file handler is removed.
    Handlers added by callers are left alone.
    """
    logger = _ensure_base_logger(json_mode=json_mode, level=logging.INFO)

    if level is not None:
        resolved = _parse_level(level, default=logger.level) if isinstance(level, str) else level
        logger.setLevel(resolved)
        for handler in logger.handlers:
            handler.setLevel(resolved)

    managed = _file_handlers(logger)
    if file_path is None:
        for handler in managed:
            _close_quietly(logger, handler)
        return logger

    target = os.path.abspath(os.path.expanduser(file_path))
    os.makedirs(os.path.dirname(target), exist_ok=True)

    reused = None
    for handler in managed:
        if getattr(handler, "baseFilename", None) == target:
            reused = handler
        else:
            _close_quietly(logger, handler)

    if reused is None:
        reused = RotatingFileHandler(target, maxBytes=_FILE_MAX_BYTES, backupCount=_FILE_BACKUPS, encoding="utf-8")
        setattr(reused, _FILE_HANDLER_ATTR, True)
        logger.addHandler(reused)
    reused.setLevel(logger.level)
    reused.setFormatter(_formatter(json_mode))
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    level: int = logging.INFO,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Write ``event`` and ``fields`` as one JSON line.

    ``ctx`` fields are merged first. ``None`` values are dropped unless
    ``keep_none`` is set. Values JSON cannot encode are written with ``str``.
    """
    payload: Dict[str, Any] = {"event": event}
    if ctx:
        payload |= ctx.to_dict()
    payload.update(fields if keep_none else {k: v for k, v in fields.items() if v is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def _coerce_tokens(tokens: Any) -> Any:
    if tokens is None:
        return None
    if isinstance(tokens, Mapping):
        return dict(tokens.items())
    to_dict = getattr(tokens, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {"value": repr(tokens)}


def normalized_log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    phase: str,
    error_code: str | None = None,
    tokens: Any = None,
    level: int = logging.INFO,
    **extra_fields: Any,
) -> None:
    """Emit a structured event carrying the canonical metering keys.

    ``structured``, ``phase`` and ``tokens`` are always present (``tokens`` may
    be ``null``); ``error_code`` is only present on failures. Extra fields never
    overwrite the canonical values.
    """
    canonical: Dict[str, Any] = {"structured": True, "phase": phase, "tokens": _coerce_tokens(tokens)}
    if error_code is not None:
        canonical["error_code"] = error_code
    extras = {k: v for k, v in extra_fields.items() if v is not None and k not in canonical}
    log_event(logger, event, ctx, level=level, keep_none=True, **canonical, **extras)


__all__ = [
    "BASE_LOGGER_NAME",
    "LogContext",
    "get_logger",
    "configure_logger",
    "log_event",
    "normalized_log_event",
]
