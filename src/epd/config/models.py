from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ModelConfig:
    name: str = "epd-model"
    path: str | None = None
    labels_path: str | None = None
    confidence: float = 0.5
    mask_threshold: float = 0.5
    input_size: int = 224
    min_size: int = 800
    top_k: int = 1


@dataclass
class SessionConfig:
    precision_level: int = 1
    visualize: bool = False
    providers: str = "auto"
    strict_geometry: bool = False


@dataclass
class TopicsConfig:
    image_input: str = "/processor/image_input"
    state_input: str = "/processor/state_input"
    visual_output: str = "/processor/output"
    p1_output: str = "/processor/epd_p1_output"
    p2_output: str = "/processor/epd_p2_output"
    p3_output: str = "/processor/epd_p3_output"
    queue_depth: int = 10


@dataclass
class MonitoringConfig:
    json_logs: bool = False
    log_level: str = "INFO"
    prometheus_enabled: bool = False
    prometheus_host: str = "0.0.0.0"
    prometheus_port: int = 9109
    event_stdout: bool = True
    event_file: str | None = None


@dataclass
class ProcessorConfig:
    node_name: str = "processor"
    model: ModelConfig = field(default_factory=ModelConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    topics: TopicsConfig = field(default_factory=TopicsConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    def as_log_context(self) -> dict[str, Any]:
        return {
            "node": self.node_name,
            "model": self.model.name,
            "model_path": self.model.path,
            "precision_level": self.session.precision_level,
            "visualize": self.session.visualize,
            "providers": self.session.providers,
            "strict_geometry": self.session.strict_geometry,
            "json_logs": self.monitoring.json_logs,
        }
