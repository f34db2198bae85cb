from __future__ import annotations

import unittest
from typing import Any

import numpy as np

from epd.io.base import Publisher
from epd.io.codec import bgr8_to_image
from epd.messages import (
    EPDImageClassification,
    EPDObjectDetection,
    Header,
    Image,
    RegionOfInterest,
    Time,
)
from epd.monitoring.metrics import RuntimeMetrics
from epd.pipeline.bootstrap import InputGeometryChanged, SessionBootstrap
from epd.pipeline.modes import Classify, Detect, DetectAndSegment, PrecisionMode
from epd.pipeline.processor import OutputPublishers, Processor
from epd.session.base import ClassificationSession, SegmentationSession
from epd.types import DetectorOutput


class _RecordingPublisher(Publisher):
    def __init__(self) -> None:
        self.messages: list[Any] = []

    def publish(self, msg: Any) -> None:
        self.messages.append(msg)


class _FakeClassifier(ClassificationSession):
    def __init__(self, names: list[str]) -> None:
        self.names = names
        self.frames: list[Any] = []

    def initialize(self, width: int, height: int) -> None:
        pass

    def classify(self, frame: Any) -> list[str]:
        self.frames.append(frame)
        return list(self.names)

    def name(self) -> str:
        return "fake-classifier"

    def device_info(self) -> str:
        return "cpu"


class _FakeDetector(SegmentationSession):
    def __init__(self, output: DetectorOutput | None = None, rendered: Any = None) -> None:
        self.output = output or DetectorOutput()
        self.rendered = rendered
        self.detect_calls = 0
        self.render_calls = 0

    def initialize(self, width: int, height: int) -> None:
        pass

    def detect(self, frame: Any) -> DetectorOutput:
        self.detect_calls += 1
        return self.output

    def detect_and_render(self, frame: Any) -> Any:
        self.render_calls += 1
        return self.rendered

    def name(self) -> str:
        return "fake-detector"

    def device_info(self) -> str:
        return "cpu"


def _frame_message(width: int = 640, height: int = 480) -> Image:
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    return bgr8_to_image(pixels, Header(stamp=Time(sec=12, nanosec=34), frame_id="camera"))


class _Harness:
    def __init__(self, mode: PrecisionMode, session: Any, strict_geometry: bool = False) -> None:
        self.session = session
        self.init_calls: list[tuple[int, int]] = []
        self.shutdown_calls = 0
        self.visual = _RecordingPublisher()
        self.p1 = _RecordingPublisher()
        self.p2 = _RecordingPublisher()
        self.p3 = _RecordingPublisher()
        self.metrics = RuntimeMetrics()
        self.bootstrap = SessionBootstrap(mode, self._factory, strict_geometry=strict_geometry)
        self.processor = Processor(
            self.bootstrap,
            OutputPublishers(visual=self.visual, p1=self.p1, p2=self.p2, p3=self.p3),
            shutdown=self._shutdown,
            metrics=self.metrics,
        )

    def _factory(self, width: int, height: int) -> Any:
        self.init_calls.append((width, height))
        return self.session

    def _shutdown(self) -> None:
        self.shutdown_calls += 1

    def published_counts(self) -> dict[str, int]:
        return {
            "visual": len(self.visual.messages),
            "p1": len(self.p1.messages),
            "p2": len(self.p2.messages),
            "p3": len(self.p3.messages),
        }


class EmptyFrameTests(unittest.TestCase):
    def test_zero_height_frame_is_dropped_with_warning(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))
        msg = Image(height=0, width=640, encoding="bgr8")

        with self.assertLogs("epd.processor", level="WARNING") as logs:
            harness.processor.on_image(msg)

        self.assertTrue(any("Input image empty" in line for line in logs.output))
        self.assertEqual(harness.published_counts(), {"visual": 0, "p1": 0, "p2": 0, "p3": 0})
        self.assertFalse(harness.bootstrap.state.initialized)
        self.assertEqual(harness.init_calls, [])
        self.assertEqual(harness.metrics.snapshot().frames_dropped, 1)


    def test_zero_width_frame_is_dropped_with_warning(self) -> None:
        harness = _Harness(Detect(), _FakeDetector())
        msg = Image(height=480, width=0, encoding="bgr8")

        with self.assertLogs("epd.processor", level="WARNING"):
            harness.processor.on_image(msg)

        self.assertEqual(harness.published_counts(), {"visual": 0, "p1": 0, "p2": 0, "p3": 0})
        self.assertEqual(harness.init_calls, [])

    def test_drop_warning_carries_frame_context(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))
        msg = Image(header=Header(stamp=Time(sec=3, nanosec=5), frame_id="camera"), height=0)

        with self.assertLogs("epd.processor", level="WARNING") as logs:
            harness.processor.on_image(msg)

        self.assertEqual(
            logs.records[0].context, {"frame_id": "camera", "stamp": "3.000000005"}
        )


class ClassificationTests(unittest.TestCase):
    def test_p1_publishes_object_names_only_on_p1_topic(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup", "book"]))

        harness.processor.on_image(_frame_message())

        self.assertEqual(harness.published_counts(), {"visual": 0, "p1": 1, "p2": 0, "p3": 0})
        msg = harness.p1.messages[0]
        self.assertIsInstance(msg, EPDImageClassification)
        self.assertEqual(msg.object_names, ["cup", "book"])

    def test_fps_log_carries_frame_context(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))

        with self.assertLogs("epd.processor", level="INFO") as logs:
            harness.processor.on_image(_frame_message())

        fps_records = [r for r in logs.records if r.getMessage().startswith("[-FPS-]=")]
        self.assertEqual(len(fps_records), 1)
        self.assertEqual(fps_records[0].context["frame_id"], "camera")
        self.assertEqual(fps_records[0].context["stamp"], "12.000000034")

    def test_classifier_receives_decoded_frame(self) -> None:
        session = _FakeClassifier(["cup"])
        harness = _Harness(Classify(), session)

        harness.processor.on_image(_frame_message(width=64, height=48))

        self.assertEqual(session.frames[0].shape, (48, 64, 3))
        self.assertEqual(session.frames[0].dtype, np.uint8)

    def test_output_header_copies_incoming_stamp_and_frame_id(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))

        harness.processor.on_image(_frame_message())

        header = harness.p1.messages[0].header
        self.assertEqual(header.frame_id, "camera")
        self.assertEqual((header.stamp.sec, header.stamp.nanosec), (12, 34))


class DetectionTests(unittest.TestCase):
    def test_p2_structured_output(self) -> None:
        output = DetectorOutput(
            class_indices=[3, 7],
            scores=[0.9, 0.4],
            bboxes=[(10, 20, 110, 220), (5, 5, 15, 25)],
        )
        harness = _Harness(Detect(visualize=False), _FakeDetector(output))

        harness.processor.on_image(_frame_message())

        self.assertEqual(harness.published_counts(), {"visual": 0, "p1": 0, "p2": 1, "p3": 0})
        msg = harness.p2.messages[0]
        self.assertIsInstance(msg, EPDObjectDetection)
        self.assertEqual(msg.class_indices, [3, 7])
        self.assertEqual(msg.scores, [0.9, 0.4])
        self.assertEqual(
            msg.bboxes,
            [
                RegionOfInterest(x_offset=10, y_offset=20, width=100, height=200, do_rectify=False),
                RegionOfInterest(x_offset=5, y_offset=5, width=10, height=20, do_rectify=False),
            ],
        )
        self.assertEqual(msg.masks, [])

    def test_p2_visualize_publishes_rendered_frame_only(self) -> None:
        rendered = np.full((480, 640, 3), 7, dtype=np.uint8)
        session = _FakeDetector(rendered=rendered)
        harness = _Harness(Detect(visualize=True), session)

        harness.processor.on_image(_frame_message())

        self.assertEqual(harness.published_counts(), {"visual": 1, "p1": 0, "p2": 0, "p3": 0})
        msg = harness.visual.messages[0]
        self.assertEqual((msg.width, msg.height), (640, 480))
        self.assertEqual(msg.encoding, "bgr8")
        self.assertEqual(msg.header.frame_id, "camera")
        self.assertEqual(session.detect_calls, 0)
        self.assertEqual(session.render_calls, 1)

    def test_p3_publishes_masks(self) -> None:
        mask = np.ones((32, 32), dtype=np.float32)
        output = DetectorOutput(
            class_indices=[1],
            scores=[0.8],
            bboxes=[(0, 0, 32, 32)],
            masks=[mask],
        )
        harness = _Harness(DetectAndSegment(visualize=False), _FakeDetector(output))

        harness.processor.on_image(_frame_message())

        self.assertEqual(harness.published_counts(), {"visual": 0, "p1": 0, "p2": 0, "p3": 1})
        msg = harness.p3.messages[0]
        self.assertEqual(msg.bboxes, [RegionOfInterest(0, 0, 32, 32, False)])
        self.assertEqual(len(msg.scores), 1)
        self.assertEqual(len(msg.class_indices), 1)
        self.assertEqual(len(msg.masks), 1)
        self.assertEqual(msg.masks[0].encoding, "32FC1")
        self.assertEqual((msg.masks[0].width, msg.masks[0].height), (32, 32))

    def test_p3_visualize_skips_structured_topic(self) -> None:
        rendered = np.zeros((480, 640, 3), dtype=np.uint8)
        harness = _Harness(DetectAndSegment(visualize=True), _FakeDetector(rendered=rendered))

        harness.processor.on_image(_frame_message())

        self.assertEqual(harness.published_counts(), {"visual": 1, "p1": 0, "p2": 0, "p3": 0})

    def test_empty_detection_still_publishes(self) -> None:
        harness = _Harness(Detect(), _FakeDetector(DetectorOutput()))

        harness.processor.on_image(_frame_message())

        msg = harness.p2.messages[0]
        self.assertEqual((msg.class_indices, msg.scores, msg.bboxes), ([], [], []))

    def test_session_errors_propagate(self) -> None:
        class _Failing(_FakeDetector):
            def detect(self, frame: Any) -> DetectorOutput:
                raise ValueError("backend exploded")

        harness = _Harness(Detect(), _Failing())

        with self.assertRaisesRegex(ValueError, "backend exploded"):
            harness.processor.on_image(_frame_message())
        self.assertEqual(harness.published_counts(), {"visual": 0, "p1": 0, "p2": 0, "p3": 0})


class BootstrapThroughProcessorTests(unittest.TestCase):
    def test_repeated_frames_initialize_once(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))

        for _ in range(5):
            harness.processor.on_image(_frame_message())

        self.assertEqual(harness.init_calls, [(640, 480)])
        self.assertTrue(harness.bootstrap.state.initialized)
        self.assertEqual(len(harness.p1.messages), 5)
        snapshot = harness.metrics.snapshot()
        self.assertEqual(snapshot.frames_received, 5)
        self.assertEqual(snapshot.frames_inferred, 5)
        self.assertEqual(snapshot.messages_published, 5)

    def test_geometry_change_is_fatal(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))
        harness.processor.on_image(_frame_message(640, 480))

        with self.assertRaises(InputGeometryChanged) as ctx:
            harness.processor.on_image(_frame_message(320, 240))

        self.assertIsInstance(ctx.exception, RuntimeError)
        self.assertTrue(str(ctx.exception).startswith("Input camera changed"))
        self.assertEqual(len(harness.p1.messages), 1)
        self.assertEqual(harness.init_calls, [(640, 480)])


class ControlPlaneTests(unittest.TestCase):
    def test_shutdown_directive_requests_termination(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))

        harness.processor.on_state("shutdown")

        self.assertEqual(harness.shutdown_calls, 1)

    def test_unknown_directive_logs_and_keeps_running(self) -> None:
        harness = _Harness(Classify(), _FakeClassifier(["cup"]))

        with self.assertLogs("epd.processor", level="WARNING") as logs:
            harness.processor.on_state("pause")

        self.assertEqual(harness.shutdown_calls, 0)
        self.assertTrue(any("Invalid state requested" in line for line in logs.output))

        harness.processor.on_image(_frame_message())
        self.assertEqual(len(harness.p1.messages), 1)


if __name__ == "__main__":
    unittest.main()
