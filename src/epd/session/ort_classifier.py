from __future__ import annotations

import logging
from typing import Any

import cv2
import numpy as np

from epd.session.base import ClassificationSession
from epd.session.model_spec import ModelSpec, label_for
from epd.session.ort_runtime import open_inference_session, static_hw

# ImageNet statistics, RGB order.
_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)


def _softmax(values: np.ndarray) -> np.ndarray:
    shifted = np.exp(values - values.max())
    return shifted / shifted.sum()


def _as_probabilities(raw: np.ndarray) -> np.ndarray:
    # Models exported with a softmax head already emit a distribution.
    if raw.size and raw.min() >= 0.0 and abs(float(raw.sum()) - 1.0) < 1e-3:
        return raw
    return _softmax(raw)


class OrtClassifier(ClassificationSession):
    """Precision-level 1 session: image-level labels from an ImageNet-style model."""

    def __init__(self, model_spec: ModelSpec, providers: str = "auto") -> None:
        self._logger = logging.getLogger("epd.session.classifier")
        self._spec = model_spec
        self._providers = providers
        self._session: Any | None = None
        self._input_name = ""
        self._input_hw = (model_spec.input_size, model_spec.input_size)
        self._labels: list[str] = []

    def initialize(self, width: int, height: int) -> None:
        session = open_inference_session(self._spec.model_path, self._providers)
        self._bind(session, width, height)

    def _bind(self, session: Any, width: int, height: int) -> None:
        model_input = session.get_inputs()[0]
        self._session = session
        self._input_name = model_input.name
        self._input_hw = static_hw(list(model_input.shape)) or (
            self._spec.input_size,
            self._spec.input_size,
        )
        self._labels = self._spec.read_labels()
        self._logger.info(
            "classifier ready frame=%dx%d input=%dx%d labels=%d",
            width,
            height,
            self._input_hw[1],
            self._input_hw[0],
            len(self._labels),
        )

    def _preprocess(self, frame: Any) -> np.ndarray:
        input_h, input_w = self._input_hw
        image = cv2.resize(frame, (input_w, input_h), interpolation=cv2.INTER_LINEAR)
        image = image[..., ::-1].astype(np.float32) / 255.0  # BGR -> RGB
        image = (image - _MEAN) / _STD
        return np.ascontiguousarray(np.transpose(image, (2, 0, 1))[None])

    def classify(self, frame: Any) -> list[str]:
        if self._session is None:
            raise RuntimeError("Session not initialized")

        outputs = self._session.run(None, {self._input_name: self._preprocess(frame)})
        probabilities = _as_probabilities(np.asarray(outputs[0], dtype=np.float32).reshape(-1))

        ranked = np.argsort(-probabilities)[: self._spec.top_k]
        return [
            label_for(self._labels, int(index))
            for index in ranked
            if probabilities[index] >= self._spec.confidence
        ]

    def name(self) -> str:
        return "onnx-classifier"

    def device_info(self) -> str:
        if self._session is None:
            return "uninitialized"
        return ",".join(self._session.get_providers())
