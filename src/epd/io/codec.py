from __future__ import annotations

from typing import Any

import cv2
import numpy as np

from epd.messages import Header, Image

# encoding -> (channels, bytes per channel, conversion to BGR or None)
_BGR8_SOURCES: dict[str, tuple[int, int, int | None]] = {
    "bgr8": (3, 1, None),
    "rgb8": (3, 1, cv2.COLOR_RGB2BGR),
    "bgra8": (4, 1, cv2.COLOR_BGRA2BGR),
    "rgba8": (4, 1, cv2.COLOR_RGBA2BGR),
    "mono8": (1, 1, cv2.COLOR_GRAY2BGR),
    "bgr16": (3, 2, None),
    "rgb16": (3, 2, cv2.COLOR_RGB2BGR),
    "bgra16": (4, 2, cv2.COLOR_BGRA2BGR),
    "rgba16": (4, 2, cv2.COLOR_RGBA2BGR),
    "mono16": (1, 2, cv2.COLOR_GRAY2BGR),
    # Packed 4:2:2, two bytes per pixel. "yuv422" is UYVY byte order.
    "yuv422": (2, 1, cv2.COLOR_YUV2BGR_UYVY),
    "uyvy": (2, 1, cv2.COLOR_YUV2BGR_UYVY),
    "yuv422_yuy2": (2, 1, cv2.COLOR_YUV2BGR_YUY2),
    "yuyv": (2, 1, cv2.COLOR_YUV2BGR_YUY2),
}

# 16 -> 8 bit depth reduction, same factor cv_bridge applies.
_DEPTH16_TO_8 = 1.0 / 256.0


def image_to_bgr8(msg: Image) -> np.ndarray:
    """Decode an image message into a dense ``(height, width, 3)`` BGR array.

    16-bit encodings are scaled down to 8 bits (rounded, saturated) and packed
    YUV 4:2:2 is converted with OpenCV. ``is_bigendian`` is honored for 16-bit
    data.
    """
    encoding = msg.encoding.lower()
    if encoding not in _BGR8_SOURCES:
        raise ValueError(f"Unsupported image encoding: {msg.encoding!r}")
    channels, depth, conversion = _BGR8_SOURCES[encoding]

    height = int(msg.height)
    width = int(msg.width)
    row_bytes = width * channels * depth
    step = int(msg.step) if msg.step else row_bytes
    if step < row_bytes:
        raise ValueError(f"Image step {step} is smaller than row size {row_bytes}")

    buffer = np.frombuffer(msg.data, dtype=np.uint8)
    if buffer.size < step * height:
        raise ValueError(
            f"Image buffer holds {buffer.size} bytes, expected {step * height}"
        )

    rows = np.ascontiguousarray(buffer[: step * height].reshape(height, step)[:, :row_bytes])
    if depth == 2:
        samples = rows.view(">u2" if msg.is_bigendian else "<u2").astype(np.uint16)
        pixels = cv2.convertScaleAbs(samples.reshape(height, width, channels), alpha=_DEPTH16_TO_8)
        pixels = pixels.reshape(height, width, channels)
    else:
        pixels = rows.reshape(height, width, channels)

    if conversion is None:
        return np.ascontiguousarray(pixels)
    if channels == 1:
        pixels = pixels[:, :, 0]
    return cv2.cvtColor(np.ascontiguousarray(pixels), conversion)


def bgr8_to_image(array: Any, header: Header | None = None) -> Image:
    pixels = np.ascontiguousarray(array, dtype=np.uint8)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an HxWx3 BGR array, got shape {pixels.shape}")
    height, width = pixels.shape[:2]
    return Image(
        header=header.copy() if header is not None else Header(),
        height=int(height),
        width=int(width),
        encoding="bgr8",
        is_bigendian=0,
        step=int(width) * 3,
        data=pixels.tobytes(),
    )


def float_mask_to_image(mask: Any, header: Header | None = None) -> Image:
    values = np.ascontiguousarray(mask, dtype="<f4")
    if values.ndim == 3 and values.shape[0] == 1:
        values = values[0]
    if values.ndim != 2:
        raise ValueError(f"Expected a single-channel HxW mask, got shape {values.shape}")
    height, width = values.shape
    return Image(
        header=header.copy() if header is not None else Header(),
        height=int(height),
        width=int(width),
        encoding="32FC1",
        is_bigendian=0,
        step=int(width) * 4,
        data=values.tobytes(),
    )
