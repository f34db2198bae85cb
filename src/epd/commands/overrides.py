from __future__ import annotations

from typing import Any


def _clean_overrides(payload: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, dict):
            nested = _clean_overrides(value)
            if nested:
                cleaned[key] = nested
            continue
        if value is not None:
            cleaned[key] = value
    return cleaned


def build_processor_overrides(args: Any) -> dict[str, Any]:
    overrides = {
        "model": {
            "name": args.model_name,
            "path": args.model_path,
            "labels_path": args.labels_path,
            "confidence": args.confidence,
            "mask_threshold": args.mask_threshold,
            "top_k": args.top_k,
        },
        "session": {
            "precision_level": args.precision_level,
            "visualize": (True if args.visualize else None),
            "providers": args.providers,
            "strict_geometry": (True if args.strict_geometry else None),
        },
        "monitoring": {
            "json_logs": (True if args.json_logs else None),
            "log_level": args.log_level,
            "prometheus_enabled": (True if getattr(args, "prometheus", False) else None),
            "prometheus_port": getattr(args, "prometheus_port", None),
            "event_stdout": (False if getattr(args, "no_event_stdout", False) else None),
            "event_file": getattr(args, "event_file", None),
        },
    }
    return _clean_overrides(overrides)
