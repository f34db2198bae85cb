from __future__ import annotations

from dataclasses import dataclass, field, replace

SHUTDOWN = "shutdown"


@dataclass
class Time:
    sec: int = 0
    nanosec: int = 0


@dataclass
class Header:
    stamp: Time = field(default_factory=Time)
    frame_id: str = ""

    def copy(self) -> Header:
        return replace(self, stamp=replace(self.stamp))


@dataclass
class Image:
    """Transport-neutral mirror of sensor_msgs/Image."""

    header: Header = field(default_factory=Header)
    height: int = 0
    width: int = 0
    encoding: str = ""
    is_bigendian: int = 0
    step: int = 0
    data: bytes = b""


@dataclass
class RegionOfInterest:
    x_offset: int = 0
    y_offset: int = 0
    height: int = 0
    width: int = 0
    do_rectify: bool = False


@dataclass
class EPDImageClassification:
    header: Header = field(default_factory=Header)
    object_names: list[str] = field(default_factory=list)


@dataclass
class EPDObjectDetection:
    header: Header = field(default_factory=Header)
    class_indices: list[int] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    bboxes: list[RegionOfInterest] = field(default_factory=list)
    masks: list[Image] = field(default_factory=list)
