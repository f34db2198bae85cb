from epd.io.base import Publisher
from epd.io.codec import bgr8_to_image, float_mask_to_image, image_to_bgr8
from epd.io.events import EventPublisher, JsonEventSink, message_event

__all__ = [
    "Publisher",
    "bgr8_to_image",
    "float_mask_to_image",
    "image_to_bgr8",
    "EventPublisher",
    "JsonEventSink",
    "message_event",
]
