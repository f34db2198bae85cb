from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from epd.messages import Header

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_CORE_FIELDS = ("ts", "level", "logger", "message", "exc_info")


def frame_context(header: Header, topic: str | None = None) -> dict[str, Any]:
    """Log fields identifying one camera frame, passed as ``extra={"context": ...}``."""
    context: dict[str, Any] = {
        "frame_id": header.frame_id,
        "stamp": f"{header.stamp.sec}.{header.stamp.nanosec:09d}",
    }
    if topic:
        context["topic"] = topic
    return context


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    context = getattr(record, "context", None)
    if not isinstance(context, dict):
        return {}
    return {key: value for key, value in context.items() if key not in _CORE_FIELDS}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        payload.update(_record_context(record))
        return json.dumps(payload, ensure_ascii=True, default=str)


class ContextFormatter(logging.Formatter):
    """Plain text lines with any frame context appended as ``key=value`` pairs."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = _record_context(record)
        if not context:
            return line
        fields = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{fields}]"


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ContextFormatter(fmt=_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # onnxruntime and numpy report provider fallbacks through the warnings module.
    logging.captureWarnings(True)
