#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/utils/logging.py
-----------------------------------
Lightweight logging helpers for `picar_base`.

Purpose
-------
Give every driver the same logging surface whether the application hands it
- a stdlib `logging.Logger`,
- another logger-like object exposing debug/info/warning/error, or
- nothing at all (a stdout logger named `picar_base` is created).

Typical usage
-------------
from picar_base.utils.logging import get_logger_adapter, format_kv

log = get_logger_adapter(None, name="picar_base.pca9685")
log.info("PCA9685 initialized " + format_kv(addr="0x40", freq_hz=50))
"""

from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


_LEVEL_DEBUG = "DEBUG"
_LEVEL_INFO = "INFO"
_LEVEL_WARN = "WARN"
_LEVEL_ERROR = "ERROR"

ROOT_LOGGER_NAME = "picar_base"


# =============================================================================
# Formatting helpers
# =============================================================================

def _safe_json(payload: Dict[str, Any]) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return str(payload)


def _stringify_message(msg: Any) -> str:
    try:
        return str(msg)
    except Exception:
        return "<unprintable message>"


# =============================================================================
# Stdlib logger setup
# =============================================================================

def ensure_std_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Return a configured stdlib logger (idempotent).

    Only the package root logger gets a handler; child loggers such as
    `picar_base.pca9685` propagate to it.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        fmt = logging.Formatter(
            fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return logging.getLogger(name)


# =============================================================================
# Logger adapter
# =============================================================================

@dataclass
class LoggerAdapter:
    """
    Small adapter hiding whether the underlying logger is a stdlib
    `logging.Logger` or any object exposing debug/info/warn(ing)/error.
    """
    target: Any = None
    name: str = ROOT_LOGGER_NAME

    def __post_init__(self) -> None:
        if self.target is None:
            self.target = ensure_std_logger(self.name)

    @property
    def is_std_logger(self) -> bool:
        return isinstance(self.target, logging.Logger)

    def is_enabled_for_debug(self) -> bool:
        if self.is_std_logger:
            return self.target.isEnabledFor(logging.DEBUG)
        return True

    def _emit(self, level: str, msg: Any) -> None:
        text = _stringify_message(msg)
        t = self.target
        if level == _LEVEL_DEBUG:
            t.debug(text)
        elif level == _LEVEL_INFO:
            t.info(text)
        elif level == _LEVEL_WARN:
            warn = getattr(t, "warning", None) or getattr(t, "warn")
            warn(text)
        else:
            t.error(text)

    def debug(self, msg: Any) -> None:
        self._emit(_LEVEL_DEBUG, msg)

    def info(self, msg: Any) -> None:
        self._emit(_LEVEL_INFO, msg)

    def warn(self, msg: Any) -> None:
        self._emit(_LEVEL_WARN, msg)

    def error(self, msg: Any) -> None:
        self._emit(_LEVEL_ERROR, msg)


def get_logger_adapter(source: Any = None, *, name: str = ROOT_LOGGER_NAME) -> LoggerAdapter:
    """
    Create a LoggerAdapter from a source object.

    Supported sources
    -----------------
    - LoggerAdapter (returned unchanged)
    - stdlib logging.Logger
    - any logger-like object
    - None (stdlib logger `name` under the `picar_base` root)
    """
    if isinstance(source, LoggerAdapter):
        return source
    if source is None:
        return LoggerAdapter(target=ensure_std_logger(name), name=name)
    return LoggerAdapter(target=source, name=name)


# =============================================================================
# Structured logging helpers
# =============================================================================

def format_kv(**kwargs: Any) -> str:
    """
    Format key=value pairs into a compact stable string.

    Example:
      format_kv(addr="0x40", freq_hz=50) -> "addr=0x40 freq_hz=50"
    """
    return " ".join(f"{k}={v}" for k, v in kwargs.items())


def format_event(
    event: str,
    *,
    level: str = _LEVEL_INFO,
    component: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Format a standardized event log line.

    Example output:
      [INFO] [pca9685] initialized addr=0x40
    """
    lvl = str(level).upper()
    comp = f"[{component}] " if component else ""
    base = f"[{lvl}] {comp}{event}"
    if details:
        if all(isinstance(k, str) for k in details.keys()):
            return f"{base} {format_kv(**details)}"
        return f"{base} details={_safe_json(details)}"
    return base


def log_event(
    logger: LoggerAdapter,
    event: str,
    *,
    level: str = _LEVEL_INFO,
    component: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Emit a standardized event message through the adapter.
    """
    msg = format_event(event, level=level, component=component, details=details)
    lvl = str(level).upper()
    if lvl == _LEVEL_DEBUG:
        logger.debug(msg)
    elif lvl in ("WARN", "WARNING"):
        logger.warn(msg)
    elif lvl == _LEVEL_ERROR:
        logger.error(msg)
    else:
        logger.info(msg)


def log_exception(
    logger: LoggerAdapter,
    exc: BaseException,
    *,
    message: str = "Driver failure",
    component: Optional[str] = None,
    include_type: bool = True,
) -> None:
    """
    Emit a compact exception log message (without full traceback).
    """
    exc_text = f"{exc.__class__.__name__}: {exc}" if include_type else str(exc)
    if component:
        logger.error(f"[{component}] {message} | {exc_text}")
    else:
        logger.error(f"{message} | {exc_text}")


# =============================================================================
# Rate-limited logging helper
# =============================================================================

@dataclass
class RateLimitedLogger:
    """
    Per-key rate limiter for repeated warnings.

    Used by the ultrasonic sensor so that a stuck echo line or a flood of
    out-of-sequence edges does not spam the log.

    Example
    -------
    rl = RateLimitedLogger(get_logger_adapter(), period_s=1.0)
    rl.warn("edge_ignored", "falling edge ignored in state STARTED")
    """
    logger: LoggerAdapter
    period_s: float = 1.0
    _last_emit_mono: Dict[str, float] = field(default_factory=dict)

    def _can_emit(self, key: str) -> bool:
        now = time.monotonic()
        last = self._last_emit_mono.get(str(key))
        if last is None or (now - last) >= max(0.0, float(self.period_s)):
            self._last_emit_mono[str(key)] = now
            return True
        return False

    def debug(self, key: str, msg: Any) -> bool:
        if self._can_emit(key):
            self.logger.debug(msg)
            return True
        return False

    def warn(self, key: str, msg: Any) -> bool:
        if self._can_emit(key):
            self.logger.warn(msg)
            return True
        return False


__all__ = [
    "ROOT_LOGGER_NAME",
    "LoggerAdapter",
    "RateLimitedLogger",
    "ensure_std_logger",
    "get_logger_adapter",
    "format_kv",
    "format_event",
    "log_event",
    "log_exception",
]
