from __future__ import annotations

import logging
import math
import unittest

from epd.monitoring.latency import MIN_ELAPSED_MS, LatencyProbe


class _StepClock:
    def __init__(self, *readings: float) -> None:
        self._readings = list(readings)

    def __call__(self) -> float:
        return self._readings.pop(0)


class LatencyProbeTests(unittest.TestCase):
    def test_reports_fps_from_elapsed_milliseconds(self) -> None:
        logger = logging.getLogger("epd.test.latency")
        probe = LatencyProbe(logger, clock=_StepClock(1.0, 1.025))

        with self.assertLogs("epd.test.latency", level="INFO") as logs:
            probe.start()
            fps = probe.stop()

        self.assertAlmostEqual(fps, 40.0, places=6)
        self.assertAlmostEqual(probe.last_elapsed_ms, 25.0, places=6)
        self.assertIn("[-FPS-]=", logs.output[0])

    def test_zero_elapsed_is_clamped(self) -> None:
        probe = LatencyProbe(clock=_StepClock(5.0, 5.0))

        probe.start()
        fps = probe.stop()

        self.assertTrue(math.isfinite(fps))
        self.assertEqual(probe.last_elapsed_ms, MIN_ELAPSED_MS)

    def test_context_is_attached_to_fps_record(self) -> None:
        logger = logging.getLogger("epd.test.latency")
        probe = LatencyProbe(logger, clock=_StepClock(0.0, 0.01))

        with self.assertLogs("epd.test.latency", level="INFO") as logs:
            probe.start()
            probe.stop({"frame_id": "camera", "stamp": "1.000000000"})

        self.assertEqual(logs.records[0].context["frame_id"], "camera")

    def test_stop_without_start_raises(self) -> None:
        with self.assertRaises(RuntimeError):
            LatencyProbe().stop()


if __name__ == "__main__":
    unittest.main()
