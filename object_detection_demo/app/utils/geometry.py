"""Geometry helper utilities for bounding boxes."""
from __future__ import annotations

from ..models import DetectedObject, PixelBox


def to_pixel_box(detected: DetectedObject, width: float, height: float) -> PixelBox:
    """Scale a normalized detection box to pixel coordinates of a ``width`` x ``height`` image."""

    return PixelBox(
        left=detected.x_min * width,
        top=detected.y_min * height,
        right=detected.x_max * width,
        bottom=detected.y_max * height,
    )


def fits_within(box: PixelBox, max_size: float) -> bool:
    """Return True if neither side of the box exceeds ``max_size`` pixels."""

    return abs(box.height) <= max_size and abs(box.width) <= max_size
