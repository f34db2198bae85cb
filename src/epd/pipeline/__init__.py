from epd.pipeline.bootstrap import InputGeometryChanged, SessionBootstrap, SessionState
from epd.pipeline.modes import (
    Classify,
    Detect,
    DetectAndSegment,
    PrecisionMode,
    precision_mode,
)
from epd.pipeline.processor import OutputPublishers, Processor
from epd.pipeline.projector import project_detections, roi_from_box

__all__ = [
    "Classify",
    "Detect",
    "DetectAndSegment",
    "InputGeometryChanged",
    "OutputPublishers",
    "PrecisionMode",
    "Processor",
    "SessionBootstrap",
    "SessionState",
    "precision_mode",
    "project_detections",
    "roi_from_box",
]
