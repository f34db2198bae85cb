from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class MetricsSnapshot:
    frames_received: int
    frames_dropped: int
    frames_inferred: int
    messages_published: int
    fps_infer: float
    last_latency_ms: float


class RuntimeMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start = time.monotonic()
        self._frames_received = 0
        self._frames_dropped = 0
        self._frames_inferred = 0
        self._messages_published = 0
        self._last_latency_ms = 0.0

        self._prometheus_started = False
        self._prometheus_counters = None

    def enable_prometheus(self, host: str, port: int) -> bool:
        try:
            from prometheus_client import Counter, Gauge, start_http_server
        except ImportError:
            return False

        if self._prometheus_started:
            return True

        start_http_server(port, addr=host)
        self._prometheus_started = True
        self._prometheus_counters = {
            "received": Counter("epd_frames_received_total", "Frames received on the image topic"),
            "dropped": Counter("epd_frames_dropped_total", "Frames discarded before inference"),
            "inferred": Counter("epd_frames_inferred_total", "Frames dispatched to the session"),
            "published": Counter(
                "epd_messages_published_total",
                "Messages published per output slot",
                ["output"],
            ),
            "latency_ms": Gauge("epd_frame_latency_ms", "Dispatch latency of the last frame"),
        }
        return True

    def mark_received(self) -> None:
        with self._lock:
            self._frames_received += 1
            if self._prometheus_counters:
                self._prometheus_counters["received"].inc()

    def add_dropped(self, count: int = 1) -> None:
        with self._lock:
            self._frames_dropped += count
            if self._prometheus_counters:
                self._prometheus_counters["dropped"].inc(count)

    def mark_inferred(self, latency_ms: float) -> None:
        with self._lock:
            self._frames_inferred += 1
            self._last_latency_ms = max(0.0, float(latency_ms))
            if self._prometheus_counters:
                self._prometheus_counters["inferred"].inc()
                self._prometheus_counters["latency_ms"].set(self._last_latency_ms)

    def mark_published(self, output: str) -> None:
        with self._lock:
            self._messages_published += 1
            if self._prometheus_counters:
                self._prometheus_counters["published"].labels(output=output).inc()

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            elapsed = max(1e-6, time.monotonic() - self._start)
            return MetricsSnapshot(
                frames_received=self._frames_received,
                frames_dropped=self._frames_dropped,
                frames_inferred=self._frames_inferred,
                messages_published=self._messages_published,
                fps_infer=self._frames_inferred / elapsed,
                last_latency_ms=self._last_latency_ms,
            )
