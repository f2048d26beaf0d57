"""Logging setup for the ``sb`` command line."""

from __future__ import annotations

import json
import logging
import time

_TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
_EXTRA_FIELDS = ("business_id", "section_id", "section_type", "status", "version_id")


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                payload[field] = getattr(record, field)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: int = logging.WARNING, *, json_output: bool = False) -> None:
    """Install a single stderr handler on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(_TEXT_FORMAT))
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    # Retry chatter from the HTTP stack is noise at INFO.
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))


__all__ = ["JsonFormatter", "configure_logging"]
