from __future__ import annotations

import logging
import math
from typing import Any

import cv2
import numpy as np

from epd.session.base import DetectionSession, SegmentationSession
from epd.session.errors import ModelLoadError
from epd.session.model_spec import ModelSpec
from epd.session.ort_runtime import open_inference_session
from epd.session.render import draw_detections
from epd.types import DetectorOutput

# Caffe2-style BGR pixel means used by the R-CNN exports.
_MEAN_BGR = np.array([102.9801, 115.9465, 122.7717], dtype=np.float32)
_PAD_DIVISOR = 32


class OrtDetector(DetectionSession):
    """Precision-level 2 session for Faster R-CNN style ONNX graphs.

    The graph takes a single ``3 x H x W`` float tensor and returns
    ``boxes (N, 4)``, ``labels (N,)`` and ``scores (N,)`` in resized-input
    coordinates. Score thresholding happens here; the caller never filters.
    """

    _with_masks = False

    def __init__(self, model_spec: ModelSpec, providers: str = "auto") -> None:
        self._logger = logging.getLogger("epd.session.detector")
        self._spec = model_spec
        self._providers = providers
        self._session: Any | None = None
        self._input_name = ""
        self._labels: list[str] = []
        self._resized_wh = (0, 0)
        self._input_buffer: np.ndarray | None = None

    def initialize(self, width: int, height: int) -> None:
        session = open_inference_session(self._spec.model_path, self._providers)
        self._bind(session, width, height)

    def _bind(self, session: Any, width: int, height: int) -> None:
        ratio = self._spec.min_size / float(min(width, height))
        resized_w = max(1, int(round(width * ratio)))
        resized_h = max(1, int(round(height * ratio)))
        padded_w = int(math.ceil(resized_w / _PAD_DIVISOR) * _PAD_DIVISOR)
        padded_h = int(math.ceil(resized_h / _PAD_DIVISOR) * _PAD_DIVISOR)

        self._session = session
        self._input_name = session.get_inputs()[0].name
        self._labels = self._spec.read_labels()
        self._resized_wh = (resized_w, resized_h)
        self._input_buffer = np.zeros((3, padded_h, padded_w), dtype=np.float32)
        self._logger.info(
            "%s ready frame=%dx%d input=%dx%d labels=%d",
            self.name(),
            width,
            height,
            padded_w,
            padded_h,
            len(self._labels),
        )

    def _preprocess(self, frame: Any) -> np.ndarray:
        assert self._input_buffer is not None
        resized_w, resized_h = self._resized_wh
        image = cv2.resize(frame, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)
        image = image.astype(np.float32) - _MEAN_BGR

        buffer = self._input_buffer
        buffer.fill(0.0)
        buffer[:, :resized_h, :resized_w] = np.transpose(image, (2, 0, 1))
        return buffer

    def detect(self, frame: Any) -> DetectorOutput:
        if self._session is None:
            raise RuntimeError("Session not initialized")

        rows, cols = frame.shape[:2]
        outputs = self._session.run(None, {self._input_name: self._preprocess(frame)})
        return self._postprocess(outputs, cols, rows)

    def _postprocess(self, outputs: list[Any], cols: int, rows: int) -> DetectorOutput:
        if len(outputs) < (4 if self._with_masks else 3):
            raise ModelLoadError(
                f"{self.name()} expected {'4' if self._with_masks else '3'} outputs, "
                f"model returned {len(outputs)}"
            )

        boxes = np.asarray(outputs[0], dtype=np.float32).reshape(-1, 4)
        class_ids = np.asarray(outputs[1]).reshape(-1).astype(np.int64)
        scores = np.asarray(outputs[2], dtype=np.float32).reshape(-1)
        masks = np.asarray(outputs[3], dtype=np.float32) if self._with_masks else None

        resized_w, resized_h = self._resized_wh
        scale_x = resized_w / float(cols)
        scale_y = resized_h / float(rows)

        keep = np.flatnonzero(scores >= self._spec.confidence)
        result = DetectorOutput()
        for index in keep.tolist():
            x1, y1, x2, y2 = boxes[index]
            xs = sorted(
                int(round(min(max(v / scale_x, 0.0), cols - 1))) for v in (x1, x2)
            )
            ys = sorted(
                int(round(min(max(v / scale_y, 0.0), rows - 1))) for v in (y1, y2)
            )
            box = (xs[0], ys[0], xs[1], ys[1])

            result.class_indices.append(int(class_ids[index]))
            result.scores.append(float(scores[index]))
            result.bboxes.append(box)
            if masks is not None:
                result.masks.append(_paste_mask(masks[index], box, cols, rows))
        return result

    def detect_and_render(self, frame: Any) -> Any:
        output = self.detect(frame)
        canvas = np.array(frame, dtype=np.uint8, copy=True)
        draw_detections(canvas, output, self._labels, self._spec.mask_threshold)
        return canvas

    def name(self) -> str:
        return "onnx-detector"

    def device_info(self) -> str:
        if self._session is None:
            return "uninitialized"
        return ",".join(self._session.get_providers())


class OrtSegmenter(OrtDetector, SegmentationSession):
    """Precision-level 3 session for Mask R-CNN style graphs (adds ``masks (N, 1, h, w)``)."""

    _with_masks = True

    def name(self) -> str:
        return "onnx-segmenter"


def _paste_mask(mask: Any, box: tuple[int, int, int, int], cols: int, rows: int) -> np.ndarray:
    """Resize a box-local mask into a full-frame float32 probability map."""
    local = np.asarray(mask, dtype=np.float32)
    local = local.reshape(local.shape[-2], local.shape[-1])
    x1, y1, x2, y2 = box
    width = x2 - x1 + 1
    height = y2 - y1 + 1

    full = np.zeros((rows, cols), dtype=np.float32)
    full[y1 : y2 + 1, x1 : x2 + 1] = cv2.resize(
        local, (width, height), interpolation=cv2.INTER_LINEAR
    )
    return full
