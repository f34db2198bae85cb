from __future__ import annotations

import logging
from functools import partial
from typing import Callable

from epd.config.models import ProcessorConfig
from epd.monitoring import RuntimeMetrics
from epd.pipeline.bootstrap import SessionBootstrap
from epd.pipeline.modes import precision_mode
from epd.pipeline.processor import OutputPublishers, Processor
from epd.session.factory import create_session
from epd.session.model_spec import ModelSpec


def build_metrics(config: ProcessorConfig) -> RuntimeMetrics:
    logger = logging.getLogger("epd.runtime")
    metrics = RuntimeMetrics()
    if config.monitoring.prometheus_enabled:
        enabled = metrics.enable_prometheus(
            config.monitoring.prometheus_host,
            config.monitoring.prometheus_port,
        )
        if enabled:
            logger.info(
                "prometheus endpoint enabled at %s:%d",
                config.monitoring.prometheus_host,
                config.monitoring.prometheus_port,
            )
        else:
            logger.warning("prometheus requested but prometheus_client is not installed")
    return metrics


def build_processor(
    config: ProcessorConfig,
    publishers: OutputPublishers,
    shutdown: Callable[[], None],
    metrics: RuntimeMetrics | None = None,
) -> Processor:
    mode = precision_mode(config.session.precision_level, config.session.visualize)
    factory = partial(
        create_session,
        mode,
        ModelSpec.from_config(config.model),
        providers=config.session.providers,
    )
    bootstrap = SessionBootstrap(
        mode,
        factory,
        strict_geometry=config.session.strict_geometry,
    )
    return Processor(bootstrap, publishers, shutdown, metrics=metrics)
