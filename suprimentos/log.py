"""
Logging setup: one JSON line per record on stderr.

Modules log through logging.getLogger(__name__); configure_logging() is called once by create_app().
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Dict

from flask import has_request_context, request


class JsonLogFormatter(logging.Formatter):
    _base_keys = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if has_request_context():
            payload["path"] = request.path
            payload["method"] = request.method

        # extra={...} keys
        for key, value in record.__dict__.items():
            if key in self._base_keys or key.startswith("_") or key in payload:
                continue
            if callable(value):
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str, separators=(",", ":"))


def configure_logging(app) -> None:
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())

    package_logger = logging.getLogger("suprimentos")
    package_logger.handlers = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False

    app.logger.handlers = [handler]
    app.logger.setLevel(level)
