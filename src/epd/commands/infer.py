from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import cv2

from epd.commands.overrides import build_processor_overrides
from epd.config import load_processor_config
from epd.io.base import Publisher
from epd.io.codec import bgr8_to_image, image_to_bgr8
from epd.io.events import EventPublisher, JsonEventSink
from epd.messages import Header, Image
from epd.monitoring import configure_logging
from epd.pipeline.processor import OutputPublishers
from epd.pipeline.runtime import build_metrics, build_processor


class _VisualFileWriter(Publisher):
    """Forwards visual frames to another publisher and writes the last one to disk."""

    def __init__(self, inner: Publisher, path: str) -> None:
        self._inner = inner
        self._path = path

    def publish(self, msg: Image) -> None:
        self._inner.publish(msg)
        if not cv2.imwrite(self._path, image_to_bgr8(msg)):
            raise RuntimeError(f"Failed to write visual output to {self._path}")


def run_infer(args: Any, root: Path) -> int:
    """Push an image file through the processor without a ROS graph."""
    config = load_processor_config(
        root=root,
        config_path=args.config,
        cli_overrides=build_processor_overrides(args),
    )
    configure_logging(
        level=config.monitoring.log_level,
        json_logs=config.monitoring.json_logs,
    )
    logger = logging.getLogger("epd.cli")

    frame = cv2.imread(args.image, cv2.IMREAD_COLOR)
    if frame is None:
        logger.error("could not read image: %s", args.image)
        return 1

    sink = JsonEventSink(
        stdout_enabled=config.monitoring.event_stdout,
        file_path=config.monitoring.event_file,
    )
    if not sink.enabled():
        logger.warning("event stdout and event file are both disabled; results will not be shown")
    sink.open()

    topics = config.topics
    visual: Publisher = EventPublisher(sink, topics.visual_output)
    if args.save_visual:
        visual = _VisualFileWriter(visual, args.save_visual)
    publishers = OutputPublishers(
        visual=visual,
        p1=EventPublisher(sink, topics.p1_output),
        p2=EventPublisher(sink, topics.p2_output),
        p3=EventPublisher(sink, topics.p3_output),
    )
    metrics = build_metrics(config)
    processor = build_processor(
        config,
        publishers,
        shutdown=lambda: logger.info("shutdown has no effect in offline inference"),
        metrics=metrics,
    )

    message = bgr8_to_image(frame, Header(frame_id=Path(args.image).name))
    try:
        for _ in range(max(1, args.repeat)):
            processor.on_image(message)
    finally:
        sink.close()

    snapshot = metrics.snapshot()
    logger.info(
        "processed frames=%d published=%d last_latency_ms=%.3f",
        snapshot.frames_inferred,
        snapshot.messages_published,
        snapshot.last_latency_ms,
    )
    return 0
