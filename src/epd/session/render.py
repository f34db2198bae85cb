from __future__ import annotations

from typing import Any

import cv2
import numpy as np

from epd.session.model_spec import label_for
from epd.types import DetectorOutput

_MASK_ALPHA = 0.45
_HUE_STEP = 0.618033988749895


def _palette_color(class_index: int) -> tuple[int, int, int]:
    # Golden-ratio hue step per class id; saturation and value stay fixed.
    hue = int((class_index * _HUE_STEP) % 1.0 * 180)
    hsv = np.array([[[hue, 200, 255]]], dtype=np.uint8)
    b, g, r = cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)[0, 0]
    return int(b), int(g), int(r)


def _blend_mask(frame: Any, mask: Any, color: tuple[int, int, int], threshold: float) -> None:
    region = np.asarray(mask) >= threshold
    if not region.any():
        return
    tint = np.array(color, dtype=np.float32)
    frame[region] = (frame[region] * (1.0 - _MASK_ALPHA) + tint * _MASK_ALPHA).astype(np.uint8)


def draw_detections(
    frame: Any,
    output: DetectorOutput,
    labels: list[str],
    mask_threshold: float = 0.5,
) -> None:
    """Draw boxes, captions and (when present) instance masks onto ``frame`` in place.

    Colors are keyed by class index, so every instance of a class shares one.
    """
    for i in range(output.data_size):
        class_index = output.class_indices[i]
        color = _palette_color(class_index)
        x1, y1, x2, y2 = output.bboxes[i]

        if i < len(output.masks):
            _blend_mask(frame, output.masks[i], color, mask_threshold)

        cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)
        cv2.putText(
            frame,
            f"{label_for(labels, class_index)} {output.scores[i]:.2f}",
            (x1, max(20, y1 - 8)),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            color,
            2,
            cv2.LINE_AA,
        )
