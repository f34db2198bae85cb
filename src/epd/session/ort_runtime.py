from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from epd.session.errors import ModelLoadError, SessionUnavailable

_logger = logging.getLogger("epd.session.ort")


def choose_providers(prefer: str = "auto") -> list[str]:
    try:
        import onnxruntime as ort
    except ImportError as exc:
        raise SessionUnavailable("onnxruntime is not installed") from exc

    available = list(ort.get_available_providers())
    if prefer == "cpu":
        return ["CPUExecutionProvider"]
    if "CUDAExecutionProvider" in available:
        return ["CUDAExecutionProvider", "CPUExecutionProvider"]
    if prefer == "cuda":
        _logger.warning("CUDA provider requested but unavailable; using CPU")
    return ["CPUExecutionProvider"]


def open_inference_session(model_path: str | None, prefer: str = "auto") -> Any:
    if not model_path:
        raise ModelLoadError("ONNX session requires model.path pointing to an .onnx file")
    path = Path(model_path)
    if not path.exists():
        raise ModelLoadError(f"ONNX model missing: {path}")

    import onnxruntime as ort

    providers = choose_providers(prefer)
    options = ort.SessionOptions()
    options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
    try:
        session = ort.InferenceSession(str(path), sess_options=options, providers=providers)
    except Exception as exc:
        raise ModelLoadError(f"Failed to load ONNX model {path}: {exc}") from exc

    _logger.info(
        "onnx session loaded model=%s providers=%s",
        path.name,
        ",".join(session.get_providers()),
    )
    return session


def static_hw(shape: list[Any]) -> tuple[int, int] | None:
    """Return (height, width) from an NCHW input shape when both are fixed integers."""
    if len(shape) != 4:
        return None
    height, width = shape[2], shape[3]
    if isinstance(height, int) and isinstance(width, int) and height > 0 and width > 0:
        return height, width
    return None
