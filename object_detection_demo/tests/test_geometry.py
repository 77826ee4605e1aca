from __future__ import annotations

import pytest

from object_detection_demo.app.models import DetectedObject, PixelBox
from object_detection_demo.app.utils.geometry import fits_within, to_pixel_box


def build_object(x_min: float, y_min: float, x_max: float, y_max: float) -> DetectedObject:
    return DetectedObject(label="car", probability=0.9, x_min=x_min, y_min=y_min, x_max=x_max, y_max=y_max)


def test_to_pixel_box_scales_by_display_size() -> None:
    box = to_pixel_box(build_object(0.1, 0.2, 0.3, 0.4), 1200, 1200)

    assert box.left == pytest.approx(120)
    assert box.top == pytest.approx(240)
    assert box.right == pytest.approx(360)
    assert box.bottom == pytest.approx(480)


def test_to_pixel_box_uses_width_and_height_separately() -> None:
    box = to_pixel_box(build_object(0.5, 0.5, 1.0, 1.0), 800, 600)

    assert (box.left, box.top, box.right, box.bottom) == (400, 300, 800, 600)
    assert box.width == 400
    assert box.height == 300


def test_fits_within_boundary() -> None:
    assert fits_within(PixelBox(left=0, top=0, right=300, bottom=300), 300)
    assert not fits_within(PixelBox(left=0, top=0, right=100, bottom=301), 300)
    assert not fits_within(PixelBox(left=0, top=0, right=301, bottom=100), 300)


def test_fits_within_ignores_orientation() -> None:
    inverted = PixelBox(left=300, top=300, right=0, bottom=0)
    assert fits_within(inverted, 300)
    assert not fits_within(PixelBox(left=301, top=0, right=0, bottom=10), 300)
