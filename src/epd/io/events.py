from __future__ import annotations

import json
import threading
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from epd.io.base import Publisher
from epd.messages import EPDImageClassification, EPDObjectDetection, Image


class JsonEventSink:
    def __init__(self, stdout_enabled: bool, file_path: str | None = None) -> None:
        self._stdout_enabled = stdout_enabled
        self._file_path = Path(file_path).expanduser().resolve() if file_path else None
        self._file_handle = None
        self._lock = threading.Lock()

    def enabled(self) -> bool:
        return self._stdout_enabled or self._file_path is not None

    def open(self) -> None:
        if self._file_path is not None:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = self._file_path.open("a", encoding="utf-8")

    def emit(self, event: dict[str, Any]) -> None:
        payload = json.dumps(event, ensure_ascii=True)
        with self._lock:
            if self._stdout_enabled:
                print(payload, flush=True)
            if self._file_handle is not None:
                self._file_handle.write(payload + "\n")
                self._file_handle.flush()

    def close(self) -> None:
        with self._lock:
            if self._file_handle is not None:
                self._file_handle.close()
                self._file_handle = None


def _image_summary(image: Image) -> dict[str, Any]:
    return {
        "height": image.height,
        "width": image.width,
        "encoding": image.encoding,
        "bytes": len(image.data),
    }


def message_event(topic: str, msg: Any) -> dict[str, Any]:
    """Flatten a published message into a JSON-safe event; pixel data is summarized."""
    event: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "topic": topic,
        "header": asdict(msg.header),
    }
    if isinstance(msg, Image):
        event["image"] = _image_summary(msg)
    elif isinstance(msg, EPDImageClassification):
        event["object_names"] = list(msg.object_names)
    elif isinstance(msg, EPDObjectDetection):
        event["class_indices"] = list(msg.class_indices)
        event["scores"] = [round(float(score), 6) for score in msg.scores]
        event["bboxes"] = [asdict(roi) for roi in msg.bboxes]
        if msg.masks:
            event["masks"] = [_image_summary(mask) for mask in msg.masks]
    else:
        raise TypeError(f"Unsupported message type: {type(msg).__name__}")
    return event


class EventPublisher(Publisher):
    """Publishes messages for one topic as JSON events."""

    def __init__(self, sink: JsonEventSink, topic: str) -> None:
        self._sink = sink
        self._topic = topic

    def publish(self, msg: Any) -> None:
        self._sink.emit(message_event(self._topic, msg))
