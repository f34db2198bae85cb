from __future__ import annotations

import logging

from epd.pipeline.modes import Classify, Detect, DetectAndSegment, PrecisionMode
from epd.session.base import SessionBackend
from epd.session.model_spec import ModelSpec
from epd.session.ort_classifier import OrtClassifier
from epd.session.ort_detector import OrtDetector, OrtSegmenter


def new_session(mode: PrecisionMode, model_spec: ModelSpec, providers: str = "auto") -> SessionBackend:
    if isinstance(mode, Classify):
        return OrtClassifier(model_spec, providers=providers)
    if isinstance(mode, DetectAndSegment):
        return OrtSegmenter(model_spec, providers=providers)
    if isinstance(mode, Detect):
        return OrtDetector(model_spec, providers=providers)
    raise TypeError(f"Unsupported precision mode: {mode!r}")


def create_session(
    mode: PrecisionMode,
    model_spec: ModelSpec,
    width: int,
    height: int,
    providers: str = "auto",
) -> SessionBackend:
    session = new_session(mode, model_spec, providers=providers)
    session.initialize(width, height)
    logging.getLogger("epd.session").info(
        "session initialized name=%s level=%d frame=%dx%d device=%s",
        session.name(),
        mode.precision_level,
        width,
        height,
        session.device_info(),
    )
    return session
