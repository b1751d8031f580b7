"""Structured logging for ziptree: one JSON object per line on stderr.

All module loggers (``ziptree.package.pack``, ``ziptree.archive.handle`` ...)
hang off the ``ziptree`` logger, which owns the single stderr handler. Pack and
unpack log a start/finish line at INFO and one line per entry at DEBUG; the
CLI ``--verbose`` flag switches between the two through ``set_verbose``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

DEFAULT_LOGGER = "ziptree"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str = DEFAULT_LOGGER) -> logging.Logger:
    """Return *name*'s logger; the ``ziptree`` root gets the JSON handler once.

    Child loggers (``ziptree.package.pack`` ...) propagate to it.
    """
    root = logging.getLogger(DEFAULT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return logging.getLogger(name)


def set_verbose(verbose: bool) -> None:
    get_logger().setLevel(logging.DEBUG if verbose else logging.INFO)
