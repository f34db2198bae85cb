from __future__ import annotations

from builtin_interfaces.msg import Time as RosTime
from epd_msgs.msg import EPDImageClassification as RosClassification
from epd_msgs.msg import EPDObjectDetection as RosDetection
from sensor_msgs.msg import Image as RosImage
from sensor_msgs.msg import RegionOfInterest as RosRegionOfInterest
from std_msgs.msg import Header as RosHeader

from epd.messages import (
    EPDImageClassification,
    EPDObjectDetection,
    Header,
    Image,
    RegionOfInterest,
    Time,
)


def header_from_ros(msg: RosHeader) -> Header:
    return Header(
        stamp=Time(sec=int(msg.stamp.sec), nanosec=int(msg.stamp.nanosec)),
        frame_id=str(msg.frame_id),
    )


def header_to_ros(header: Header) -> RosHeader:
    return RosHeader(
        stamp=RosTime(sec=header.stamp.sec, nanosec=header.stamp.nanosec),
        frame_id=header.frame_id,
    )


def image_from_ros(msg: RosImage) -> Image:
    return Image(
        header=header_from_ros(msg.header),
        height=int(msg.height),
        width=int(msg.width),
        encoding=str(msg.encoding),
        is_bigendian=int(msg.is_bigendian),
        step=int(msg.step),
        data=bytes(msg.data),
    )


def image_to_ros(image: Image) -> RosImage:
    ros = RosImage()
    ros.header = header_to_ros(image.header)
    ros.height = image.height
    ros.width = image.width
    ros.encoding = image.encoding
    ros.is_bigendian = image.is_bigendian
    ros.step = image.step
    ros.data = image.data
    return ros


def roi_to_ros(roi: RegionOfInterest) -> RosRegionOfInterest:
    return RosRegionOfInterest(
        x_offset=roi.x_offset,
        y_offset=roi.y_offset,
        height=roi.height,
        width=roi.width,
        do_rectify=roi.do_rectify,
    )


def classification_to_ros(msg: EPDImageClassification) -> RosClassification:
    ros = RosClassification()
    ros.header = header_to_ros(msg.header)
    ros.object_names = list(msg.object_names)
    return ros


def detection_to_ros(msg: EPDObjectDetection) -> RosDetection:
    ros = RosDetection()
    ros.header = header_to_ros(msg.header)
    ros.class_indices = list(msg.class_indices)
    ros.scores = list(msg.scores)
    ros.bboxes = [roi_to_ros(roi) for roi in msg.bboxes]
    ros.masks = [image_to_ros(mask) for mask in msg.masks]
    return ros
