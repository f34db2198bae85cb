from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from epd.io.base import Publisher
from epd.io.codec import bgr8_to_image, image_to_bgr8
from epd.messages import SHUTDOWN, EPDImageClassification, Header, Image
from epd.monitoring.latency import LatencyProbe
from epd.monitoring.logging import frame_context
from epd.monitoring.metrics import RuntimeMetrics
from epd.pipeline.bootstrap import SessionBootstrap
from epd.pipeline.modes import Classify, Detect, DetectAndSegment
from epd.pipeline.projector import project_detections
from epd.session.base import SessionBackend


@dataclass
class OutputPublishers:
    visual: Publisher
    p1: Publisher
    p2: Publisher
    p3: Publisher


class Processor:
    """Per-frame state machine between the image topic and the inference session.

    Each callback runs to completion before the next one is dispatched; the
    only shared state is the bootstrap, which is written once.
    """

    def __init__(
        self,
        bootstrap: SessionBootstrap,
        publishers: OutputPublishers,
        shutdown: Callable[[], None],
        metrics: RuntimeMetrics | None = None,
        probe: LatencyProbe | None = None,
    ) -> None:
        self._logger = logging.getLogger("epd.processor")
        self._bootstrap = bootstrap
        self._publishers = publishers
        self._shutdown = shutdown
        self._metrics = metrics
        self._probe = probe or LatencyProbe(self._logger)

    @property
    def bootstrap(self) -> SessionBootstrap:
        return self._bootstrap

    def on_image(self, msg: Image) -> None:
        if self._metrics is not None:
            self._metrics.mark_received()

        context = frame_context(msg.header)
        if msg.height == 0 or msg.width == 0:
            self._logger.warning("Input image empty. Discarding.", extra={"context": context})
            if self._metrics is not None:
                self._metrics.add_dropped()
            return

        frame = image_to_bgr8(msg)
        session = self._bootstrap.ensure(frame)

        self._probe.start()
        self._dispatch(session, frame, msg.header)
        self._probe.stop(context)

        if self._metrics is not None:
            self._metrics.mark_inferred(self._probe.last_elapsed_ms)

    def _dispatch(self, session: SessionBackend, frame: Any, header: Header) -> None:
        mode = self._bootstrap.mode
        if isinstance(mode, Classify):
            names = session.classify(frame)
            self._publish(
                "p1",
                EPDImageClassification(header=header.copy(), object_names=list(names)),
            )
            return

        if isinstance(mode, (Detect, DetectAndSegment)):
            if mode.visualize:
                rendered = session.detect_and_render(frame)
                self._publish("visual", bgr8_to_image(rendered, header))
                return

            with_masks = isinstance(mode, DetectAndSegment)
            result = session.detect(frame)
            self._publish(
                "p3" if with_masks else "p2",
                project_detections(result, header, include_masks=with_masks),
            )
            return

        raise TypeError(f"Unsupported precision mode: {mode!r}")

    def _publish(self, slot: str, msg: Any) -> None:
        getattr(self._publishers, slot).publish(msg)
        if self._metrics is not None:
            self._metrics.mark_published(slot)

    def on_state(self, directive: str) -> None:
        if directive == SHUTDOWN:
            self._logger.info("Shutdown requested.")
            self._shutdown()
            return
        self._logger.warning("Invalid state requested: %r", directive)
