from epd.session.base import (
    ClassificationSession,
    DetectionSession,
    SegmentationSession,
    SessionBackend,
)
from epd.session.errors import ModelLoadError, SessionUnavailable
from epd.session.model_spec import ModelSpec

__all__ = [
    "ClassificationSession",
    "DetectionSession",
    "SegmentationSession",
    "SessionBackend",
    "ModelLoadError",
    "SessionUnavailable",
    "ModelSpec",
]
