from __future__ import annotations

from epd.io.codec import float_mask_to_image
from epd.messages import EPDObjectDetection, Header, Image, RegionOfInterest
from epd.types import DetectorOutput


def roi_from_box(box: tuple[int, int, int, int]) -> RegionOfInterest:
    x1, y1, x2, y2 = (int(v) for v in box)
    return RegionOfInterest(
        x_offset=x1,
        y_offset=y1,
        height=y2 - y1,
        width=x2 - x1,
        do_rectify=False,
    )


def project_detections(
    output: DetectorOutput,
    header: Header | None = None,
    include_masks: bool = False,
) -> EPDObjectDetection:
    """Translate detector output into a detection message, preserving detector order."""
    output.validate(with_masks=include_masks)
    size = output.data_size
    header = header if header is not None else Header()

    class_indices = [0] * size
    scores = [0.0] * size
    bboxes = [RegionOfInterest()] * size
    masks: list[Image] = [Image()] * size if include_masks else []

    for i in range(size):
        class_indices[i] = int(output.class_indices[i])
        scores[i] = float(output.scores[i])
        bboxes[i] = roi_from_box(output.bboxes[i])
        if include_masks:
            masks[i] = float_mask_to_image(output.masks[i], header)

    return EPDObjectDetection(
        header=header.copy(),
        class_indices=class_indices,
        scores=scores,
        bboxes=bboxes,
        masks=masks,
    )
