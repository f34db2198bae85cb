from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Classify:
    """P1: image-level labels. Has no visualization path."""

    precision_level = 1


@dataclass(frozen=True)
class Detect:
    """P2: bounding boxes, or a rendered frame when ``visualize`` is set."""

    visualize: bool = False
    precision_level = 2


@dataclass(frozen=True)
class DetectAndSegment:
    """P3: bounding boxes plus per-instance masks, or a rendered frame."""

    visualize: bool = False
    precision_level = 3


PrecisionMode = Union[Classify, Detect, DetectAndSegment]


def precision_mode(level: int, visualize: bool = False) -> PrecisionMode:
    if level == 1:
        if visualize:
            logging.getLogger("epd.pipeline").warning(
                "visualize is not supported at precision level 1; publishing labels only"
            )
        return Classify()
    if level == 2:
        return Detect(visualize=visualize)
    if level == 3:
        return DetectAndSegment(visualize=visualize)
    raise ValueError(f"Unsupported precision level: {level}")


def is_visualizing(mode: PrecisionMode) -> bool:
    return bool(getattr(mode, "visualize", False))
