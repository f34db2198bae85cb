from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DetectorOutput:
    """Structured detector result for a single frame.

    ``bboxes`` holds ``(x1, y1, x2, y2)`` pixel corners. ``masks`` is empty for
    box-only detectors and carries one float32 map per instance otherwise.
    """

    class_indices: list[int] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    bboxes: list[tuple[int, int, int, int]] = field(default_factory=list)
    masks: list[Any] = field(default_factory=list)

    @property
    def data_size(self) -> int:
        return len(self.class_indices)

    def validate(self, with_masks: bool = False) -> None:
        size = self.data_size
        lengths = {
            "scores": len(self.scores),
            "bboxes": len(self.bboxes),
        }
        if with_masks:
            lengths["masks"] = len(self.masks)
        mismatched = {name: n for name, n in lengths.items() if n != size}
        if mismatched:
            raise ValueError(
                f"Detector output lengths disagree with data_size={size}: {mismatched}"
            )
