from __future__ import annotations

import logging
import time
from typing import Any, Callable

# Floor for a single measurement; keeps the FPS figure finite for sub-microsecond branches.
MIN_ELAPSED_MS = 0.001


class LatencyProbe:
    """Wall-clock probe around one frame's dispatch, reported as instantaneous FPS."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._logger = logger or logging.getLogger("epd.processor.latency")
        self._clock = clock
        self._begin: float | None = None
        self.last_elapsed_ms = 0.0
        self.last_fps = 0.0

    def start(self) -> None:
        self._begin = self._clock()

    def stop(self, context: dict[str, Any] | None = None) -> float:
        if self._begin is None:
            raise RuntimeError("LatencyProbe.stop() called before start()")
        elapsed_ms = (self._clock() - self._begin) * 1000.0
        self._begin = None

        self.last_elapsed_ms = max(MIN_ELAPSED_MS, elapsed_ms)
        self.last_fps = 1000.0 / self.last_elapsed_ms
        extra = {"context": context} if context else None
        self._logger.info("[-FPS-]= %f", self.last_fps, extra=extra)
        return self.last_fps
