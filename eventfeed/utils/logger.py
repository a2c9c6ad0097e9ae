"""Centralized logging configuration for the event feed service.

Exposes one configured logger shared by the feed controller, the Supabase
store and the API. Call sites attach context through ``extra={...}``; the
formatter appends those fields to the line as ``key=value`` pairs so a
refresh tick reads e.g. ``Auto-refreshing events | tab=upcoming page=0``.
"""
from __future__ import annotations

import logging
import os

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{line} | {pairs}"


def _create_logger() -> logging.Logger:
    logger = logging.getLogger("eventfeed")
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        ContextFormatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    logger.setLevel(_LOG_LEVEL)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


logger = _create_logger()
