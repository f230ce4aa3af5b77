"""
JSON logging for the goods core.

Kept out of a module named ``logging`` so it never shadows the standard library.
Log calls take optional ``tags``, ``payload`` and ``detail`` keywords:

    logger.info("Successfully saved new good", tags=["good", "save"], payload=good)
    logger.error("Failed to get all goods", tags=["good", "find"], detail=str(exc))
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.settings import get_settings

# Keywords GoodsLogger accepts on top of the standard logging ones
EVENT_FIELDS = ("tags", "payload", "detail")


class GoodsLogFormatter(logging.Formatter):
    """One JSON object per record; event fields only appear when set."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in EVENT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        # Payloads echo caller input, which may hold anything
        return json.dumps(entry, ensure_ascii=False, default=str)


class GoodsLogger(logging.LoggerAdapter):
    def process(self, msg: str, kwargs: Dict[str, Any]):
        extra = dict(kwargs.pop("extra", None) or {})
        for field in EVENT_FIELDS:
            if field in kwargs:
                extra[field] = kwargs.pop(field)
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, level: Optional[str] = None) -> GoodsLogger:
    """Return a GoodsLogger writing JSON to stdout.

    Handlers are attached once per logger name; ``level`` defaults to the
    configured ``log_level``.
    """
    logger = logging.getLogger(name)
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(GoodsLogFormatter())
        logger.addHandler(handler)

    logger.setLevel((level or get_settings().log_level).upper())
    return GoodsLogger(logger, {})
