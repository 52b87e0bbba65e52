"""Structured logging setup for request migrations."""

import json
import logging
import sys
from typing import Optional


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        # Structured fields emitted by the migration pipeline and middleware
        for attr in [
            "phase",
            "migration_version",
            "client_version",
            "request_method",
            "request_path",
            "error_code",
        ]:
            if hasattr(record, attr):
                data[attr] = getattr(record, attr)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    if level is None or json_format is None:
        from request_migrations.core.config import get_settings

        settings = get_settings()
        level = level or settings.LOG_LEVEL
        json_format = settings.LOG_JSON if json_format is None else json_format

    root = logging.getLogger()
    root.setLevel(level.upper())
    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]
