import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .config import get_settings
from .context import get_request_id, get_user_id
from .utils import ensure_dir


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        settings = get_settings()
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "event": getattr(record, "event", "log"),
            "logger": record.name,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", None) or get_request_id(),
            "user_id": getattr(record, "user_id", None) or get_user_id(),
            "duration_ms": getattr(record, "duration_ms", None),
            "backend": settings.backend,
            "scorer": settings.scorer,
        }
        fields = getattr(record, "fields", None)
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["err"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


_logger = None


def configure_logging() -> logging.Logger:
    global _logger
    if _logger:
        return _logger
    logger = logging.getLogger("content_governance")
    log_level = os.getenv("GOVERNANCE_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    formatter = JsonFormatter()
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    log_path = os.getenv("LOG_PATH")
    log_dir = os.getenv("GOVERNANCE_LOG_DIR")
    if log_path or log_dir:
        if log_path:
            file_path = Path(log_path)
        else:
            file_path = Path(log_dir) / "content_governance.log"
        ensure_dir(file_path.parent)
        file_handler = RotatingFileHandler(file_path, maxBytes=2_000_000, backupCount=5)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    logger.propagate = False
    _logger = logger
    return logger


_RESERVED = {"request_id", "user_id", "duration_ms"}


def log_event(event: str, level: str = "info", exc_info=None, **fields) -> None:
    logger = configure_logging()
    extra: dict[str, Any] = {"event": event}
    extra.update({k: v for k, v in fields.items() if k in _RESERVED})
    rest = {k: v for k, v in fields.items() if k not in _RESERVED}
    if rest:
        extra["fields"] = rest
    logger.log(getattr(logging, level.upper(), logging.INFO), event, extra=extra, exc_info=exc_info)
