from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from epd.types import DetectorOutput


class SessionBackend(ABC):
    @abstractmethod
    def initialize(self, width: int, height: int) -> None:
        """Load the model and allocate input buffers for frames of width x height."""

    @abstractmethod
    def name(self) -> str:
        """Return stable session name for logging."""

    @abstractmethod
    def device_info(self) -> str:
        """Return the execution providers in use."""


class ClassificationSession(SessionBackend):
    @abstractmethod
    def classify(self, frame: Any) -> list[str]:
        """Return class names for the whole frame, best first."""


class DetectionSession(SessionBackend):
    @abstractmethod
    def detect(self, frame: Any) -> DetectorOutput:
        """Return boxes, scores and class indices for a single frame."""

    @abstractmethod
    def detect_and_render(self, frame: Any) -> Any:
        """Return a BGR copy of the frame with detections drawn on it."""


class SegmentationSession(DetectionSession):
    """Detection session whose outputs also carry one float32 mask per instance."""
