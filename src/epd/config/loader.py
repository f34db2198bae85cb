from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from epd.config.defaults import DEFAULT_CONFIG
from epd.config.models import (
    ModelConfig,
    MonitoringConfig,
    ProcessorConfig,
    SessionConfig,
    TopicsConfig,
)

_PRECISION_LEVELS = {1, 2, 3}
_PROVIDERS = {"auto", "cuda", "cpu"}

_CONFIG_FILE_NAMES = (
    "epd.toml",
    "epd.yaml",
    "epd.yml",
    "epd.json",
    "settings.toml",
    "settings.yaml",
    "settings.yml",
    "settings.json",
)


def _merge_dict(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value
    return base


def _lower_keys(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_lower_keys(item) for item in obj]
    return obj


def _maybe_parse_simple_config(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")

    if suffix == ".json":
        return json.loads(text)

    if suffix == ".toml":
        try:
            import tomllib
        except ImportError:  # pragma: no cover - Python < 3.11
            import tomli as tomllib  # type: ignore

        return tomllib.loads(text)

    if suffix in {".yaml", ".yml"}:
        import yaml

        loaded = yaml.safe_load(text)
        return loaded if loaded else {}

    raise RuntimeError(f"Unsupported config extension: {suffix}")


def _load_with_dynaconf(config_paths: list[Path]) -> dict[str, Any]:
    try:
        from dynaconf import Dynaconf
    except ImportError:
        return {}

    settings = Dynaconf(
        envvar_prefix="EPD",
        settings_files=[str(path) for path in config_paths if path.exists()],
        merge_enabled=True,
        environments=False,
        load_dotenv=True,
    )
    return _lower_keys(settings.as_dict())


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _resolve_relative(path_value: str | None, root: Path) -> str | None:
    if not path_value:
        return path_value
    p = Path(path_value).expanduser()
    if p.is_absolute():
        return str(p)
    return str((root / p).resolve())


def _normalize(data: dict[str, Any], root: Path) -> ProcessorConfig:
    model_data = data.get("model", {})
    session_data = data.get("session", {})
    topics_data = data.get("topics", {})
    monitoring_data = data.get("monitoring", {})

    precision_level = int(session_data.get("precision_level", 1))
    if precision_level not in _PRECISION_LEVELS:
        raise RuntimeError(
            f"Unsupported precision_level {precision_level}; expected one of 1, 2, 3"
        )

    providers = str(session_data.get("providers", "auto")).lower().strip()
    if providers not in _PROVIDERS:
        raise RuntimeError(f"Unsupported providers setting: {providers}")

    return ProcessorConfig(
        node_name=str(data.get("node_name", "processor")),
        model=ModelConfig(
            name=str(model_data.get("name", "epd-model")),
            path=_resolve_relative(model_data.get("path"), root),
            labels_path=_resolve_relative(model_data.get("labels_path"), root),
            confidence=float(model_data.get("confidence", 0.5)),
            mask_threshold=float(model_data.get("mask_threshold", 0.5)),
            input_size=max(1, int(model_data.get("input_size", 224))),
            min_size=max(32, int(model_data.get("min_size", 800))),
            top_k=max(1, int(model_data.get("top_k", 1))),
        ),
        session=SessionConfig(
            precision_level=precision_level,
            visualize=_coerce_bool(session_data.get("visualize", False)),
            providers=providers,
            strict_geometry=_coerce_bool(session_data.get("strict_geometry", False)),
        ),
        topics=TopicsConfig(
            image_input=str(topics_data.get("image_input", "/processor/image_input")),
            state_input=str(topics_data.get("state_input", "/processor/state_input")),
            visual_output=str(topics_data.get("visual_output", "/processor/output")),
            p1_output=str(topics_data.get("p1_output", "/processor/epd_p1_output")),
            p2_output=str(topics_data.get("p2_output", "/processor/epd_p2_output")),
            p3_output=str(topics_data.get("p3_output", "/processor/epd_p3_output")),
            queue_depth=max(1, int(topics_data.get("queue_depth", 10))),
        ),
        monitoring=MonitoringConfig(
            json_logs=_coerce_bool(monitoring_data.get("json_logs", False)),
            log_level=str(monitoring_data.get("log_level", "INFO")).upper(),
            prometheus_enabled=_coerce_bool(
                monitoring_data.get("prometheus_enabled", False)
            ),
            prometheus_host=str(monitoring_data.get("prometheus_host", "0.0.0.0")),
            prometheus_port=int(monitoring_data.get("prometheus_port", 9109)),
            event_stdout=_coerce_bool(monitoring_data.get("event_stdout", True)),
            event_file=_resolve_relative(monitoring_data.get("event_file"), root),
        ),
    )


def _default_config_copy() -> dict[str, Any]:
    return json.loads(json.dumps(DEFAULT_CONFIG))


def load_processor_config(
    root: Path,
    config_path: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> ProcessorConfig:
    config_paths: list[Path] = []
    if config_path:
        config_paths.append(Path(config_path))
    else:
        for name in _CONFIG_FILE_NAMES:
            candidate = root / name
            if candidate.exists():
                config_paths.append(candidate)

    for path in config_paths:
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

    merged = _default_config_copy()

    dynaconf_data = _load_with_dynaconf(config_paths)
    if dynaconf_data:
        _merge_dict(merged, dynaconf_data)
    else:
        for path in config_paths:
            _merge_dict(merged, _lower_keys(_maybe_parse_simple_config(path)))

    if cli_overrides:
        _merge_dict(merged, _lower_keys(cli_overrides))

    return _normalize(merged, root)


def processor_config_to_dict(config: ProcessorConfig) -> dict[str, Any]:
    return asdict(config)
