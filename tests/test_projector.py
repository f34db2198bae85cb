from __future__ import annotations

import unittest

import numpy as np

from epd.messages import Header, RegionOfInterest, Time
from epd.pipeline.projector import project_detections, roi_from_box
from epd.types import DetectorOutput


class RoiFromBoxTests(unittest.TestCase):
    def test_corner_box_becomes_offset_and_extent(self) -> None:
        roi = roi_from_box((10, 20, 110, 220))

        self.assertEqual(roi, RegionOfInterest(x_offset=10, y_offset=20, height=200, width=100))
        self.assertFalse(roi.do_rectify)

    def test_degenerate_box_has_zero_extent(self) -> None:
        roi = roi_from_box((5, 5, 5, 5))

        self.assertEqual((roi.width, roi.height), (0, 0))


class ProjectDetectionsTests(unittest.TestCase):
    def test_preserves_detector_order_without_filtering(self) -> None:
        output = DetectorOutput(
            class_indices=[9, 2, 4],
            scores=[0.1, 0.99, 0.5],
            bboxes=[(0, 0, 1, 1), (2, 2, 4, 4), (1, 0, 3, 5)],
        )

        msg = project_detections(output)

        self.assertEqual(msg.class_indices, [9, 2, 4])
        self.assertEqual(msg.scores, [0.1, 0.99, 0.5])
        self.assertEqual([roi.x_offset for roi in msg.bboxes], [0, 2, 1])
        self.assertEqual([roi.height for roi in msg.bboxes], [1, 2, 5])

    def test_masks_are_dropped_unless_requested(self) -> None:
        output = DetectorOutput(
            class_indices=[1],
            scores=[0.7],
            bboxes=[(0, 0, 2, 2)],
            masks=[np.zeros((4, 4), dtype=np.float32)],
        )

        self.assertEqual(project_detections(output).masks, [])
        self.assertEqual(len(project_detections(output, include_masks=True).masks), 1)

    def test_mask_values_round_trip_as_float32(self) -> None:
        mask = np.arange(6, dtype=np.float32).reshape(2, 3) / 10.0
        output = DetectorOutput(class_indices=[0], scores=[1.0], bboxes=[(0, 0, 3, 2)], masks=[mask])

        image = project_detections(output, include_masks=True).masks[0]

        decoded = np.frombuffer(image.data, dtype="<f4").reshape(image.height, image.width)
        np.testing.assert_array_equal(decoded, mask)
        self.assertEqual(image.encoding, "32FC1")
        self.assertEqual(image.step, 12)

    def test_header_is_copied_into_message_and_masks(self) -> None:
        header = Header(stamp=Time(sec=3, nanosec=4), frame_id="cam")
        output = DetectorOutput(
            class_indices=[0],
            scores=[0.5],
            bboxes=[(0, 0, 1, 1)],
            masks=[np.zeros((2, 2), dtype=np.float32)],
        )

        msg = project_detections(output, header, include_masks=True)

        self.assertEqual(msg.header, header)
        self.assertIsNot(msg.header, header)
        self.assertEqual(msg.masks[0].header.frame_id, "cam")

    def test_length_mismatch_is_rejected(self) -> None:
        output = DetectorOutput(class_indices=[1, 2], scores=[0.5], bboxes=[(0, 0, 1, 1)] * 2)

        with self.assertRaises(ValueError):
            project_detections(output)

    def test_missing_masks_rejected_for_segmentation(self) -> None:
        output = DetectorOutput(class_indices=[1], scores=[0.5], bboxes=[(0, 0, 1, 1)])

        with self.assertRaises(ValueError):
            project_detections(output, include_masks=True)


if __name__ == "__main__":
    unittest.main()
