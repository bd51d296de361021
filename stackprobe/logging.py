"""Structured logging helpers: JSON lines with context."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

ROOT_LOGGER = "stackprobe"
LEVEL_ENV = "STACKPROBE_LOG_LEVEL"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update(fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        level = os.environ.get(LEVEL_ENV, "WARNING").upper()
        root.setLevel(level if level in logging.getLevelNamesMapping() else logging.WARNING)
        root.propagate = False
    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return *name* under the ``stackprobe`` logger, configuring it once.

    Pass structured context with ``extra={"fields": {...}}``.
    """
    root = _configure_root()
    if name == ROOT_LOGGER:
        return root
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
