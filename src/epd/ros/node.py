from __future__ import annotations

import logging
from typing import Any, Callable

import rclpy
from epd_msgs.msg import EPDImageClassification as RosClassification
from epd_msgs.msg import EPDObjectDetection as RosDetection
from rclpy.executors import ExternalShutdownException
from rclpy.node import Node
from sensor_msgs.msg import Image as RosImage
from std_msgs.msg import String

from epd.config.models import ProcessorConfig
from epd.io.base import Publisher
from epd.pipeline.processor import OutputPublishers, Processor
from epd.pipeline.runtime import build_metrics, build_processor
from epd.ros.convert import (
    classification_to_ros,
    detection_to_ros,
    image_from_ros,
    image_to_ros,
)


class RosPublisher(Publisher):
    def __init__(self, publisher: Any, convert: Callable[[Any], Any]) -> None:
        self._publisher = publisher
        self._convert = convert

    def publish(self, msg: Any) -> None:
        self._publisher.publish(self._convert(msg))


class ProcessorNode(Node):
    """ROS 2 node wiring the processor callbacks to the perception topics."""

    def __init__(self, config: ProcessorConfig) -> None:
        super().__init__(config.node_name)
        self._logger = logging.getLogger("epd.ros")
        topics = config.topics
        depth = topics.queue_depth

        publishers = OutputPublishers(
            visual=RosPublisher(
                self.create_publisher(RosImage, topics.visual_output, depth),
                image_to_ros,
            ),
            p1=RosPublisher(
                self.create_publisher(RosClassification, topics.p1_output, depth),
                classification_to_ros,
            ),
            p2=RosPublisher(
                self.create_publisher(RosDetection, topics.p2_output, depth),
                detection_to_ros,
            ),
            p3=RosPublisher(
                self.create_publisher(RosDetection, topics.p3_output, depth),
                detection_to_ros,
            ),
        )
        self.processor: Processor = build_processor(
            config,
            publishers,
            shutdown=rclpy.try_shutdown,
            metrics=build_metrics(config),
        )

        self.create_subscription(RosImage, topics.image_input, self._on_image, depth)
        self.create_subscription(String, topics.state_input, self._on_state, depth)
        self._logger.info(
            "listening on %s and %s (depth %d)",
            topics.image_input,
            topics.state_input,
            depth,
        )

    def _on_image(self, msg: RosImage) -> None:
        self.processor.on_image(image_from_ros(msg))

    def _on_state(self, msg: String) -> None:
        self.processor.on_state(msg.data)


def spin_processor(config: ProcessorConfig, args: list[str] | None = None) -> int:
    rclpy.init(args=args)
    node = ProcessorNode(config)
    try:
        rclpy.spin(node)
    except (KeyboardInterrupt, ExternalShutdownException):
        pass
    finally:
        node.destroy_node()
        rclpy.try_shutdown()
    return 0
