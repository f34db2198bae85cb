from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from epd.commands.overrides import build_processor_overrides
from epd.config import load_processor_config
from epd.monitoring import configure_logging


def run_node(args: Any, root: Path) -> int:
    config = load_processor_config(
        root=root,
        config_path=args.config,
        cli_overrides=build_processor_overrides(args),
    )
    configure_logging(
        level=config.monitoring.log_level,
        json_logs=config.monitoring.json_logs,
    )

    logger = logging.getLogger("epd.cli")
    logger.info("starting processor node with config=%s", config.as_log_context())

    try:
        from epd.ros.node import spin_processor
    except ModuleNotFoundError as exc:
        logger.error(
            "missing dependency: %s. Source a ROS 2 environment with epd_msgs built before running.",
            exc.name,
        )
        return 2

    ros_args = ["--ros-args", *args.ros_args] if args.ros_args else None
    return spin_processor(config, args=ros_args)
