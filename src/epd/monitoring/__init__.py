from epd.monitoring.latency import LatencyProbe
from epd.monitoring.logging import configure_logging, frame_context
from epd.monitoring.metrics import RuntimeMetrics

__all__ = [
    "configure_logging",
    "frame_context",
    "LatencyProbe",
    "RuntimeMetrics",
]
