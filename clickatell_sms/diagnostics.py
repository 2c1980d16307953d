"""
File: clickatell_sms/diagnostics.py

Project: Clickatell SMS client

Purpose:
Process-wide diagnostic channel.
- Single on/off toggle shared by the whole library
- Every library logger is gated by that toggle

Design rules:
- When diagnostics are off, the library emits no log records at all
- Handlers/formatting are left to the application (stdlib logging)
"""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "clickatell_sms"

_enabled = False


class _DiagnosticFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return _enabled


_FILTER = _DiagnosticFilter()


def get_logger(name: str) -> logging.Logger:
    """
    Return a library logger that honours the diagnostic toggle.
    """
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    if _FILTER not in logger.filters:
        logger.addFilter(_FILTER)
    return logger


def debug_init(enabled: bool) -> None:
    global _enabled
    _enabled = bool(enabled)


def is_enabled() -> bool:
    return _enabled
