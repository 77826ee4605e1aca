"""Overlay planning, drawing and window display for detections."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..models import ColorOrder, DetectedObject, ImageShape, PixelBox
from ..utils.geometry import fits_within, to_pixel_box

LOGGER = logging.getLogger(__name__)

QUIT_KEYS = {ord("q"), 27}


@dataclass(frozen=True)
class OverlayStyle:
    show_labels: bool = True
    max_box_size: float = 300.0
    box_color_bgr: Tuple[int, int, int] = (0, 0, 255)
    label_color_bgr: Tuple[int, int, int] = (255, 255, 255)
    thickness: int = 3
    font_scale: float = 1.0
    font_face: int = cv2.FONT_HERSHEY_SIMPLEX


@dataclass(frozen=True)
class Overlay:
    box: PixelBox
    label: Optional[str] = None


def format_label(detected: DetectedObject) -> str:
    return f"{detected.label} : {detected.probability}"


def plan_overlays(
    detections: Iterable[DetectedObject],
    shape: ImageShape,
    style: OverlayStyle,
) -> List[Overlay]:
    """Map detections to pixel overlays, skipping boxes larger than the size threshold."""

    if shape.width is None or shape.height is None:
        raise ValueError("Display shape must have a known width and height")

    overlays: List[Overlay] = []
    for detected in detections:
        box = to_pixel_box(detected, shape.width, shape.height)
        if not fits_within(box, style.max_box_size):
            LOGGER.debug("Skipping %s box %.0fx%.0f", detected.label, box.width, box.height)
            continue
        label = format_label(detected) if style.show_labels else None
        overlays.append(Overlay(box=box, label=label))
    return overlays


def render_overlays(image: np.ndarray, overlays: Sequence[Overlay], style: OverlayStyle) -> np.ndarray:
    """Draw overlays on a copy of a BGR ``uint8`` image."""

    output = image.copy()
    for overlay in overlays:
        box = overlay.box
        cv2.rectangle(
            output,
            (int(round(box.left)), int(round(box.top))),
            (int(round(box.right)), int(round(box.bottom))),
            style.box_color_bgr,
            style.thickness,
        )
        if overlay.label:
            # text baseline sits on the bottom-left corner of the box
            cv2.putText(
                output,
                overlay.label,
                (int(round(box.left)), int(round(box.bottom))),
                style.font_face,
                style.font_scale,
                style.label_color_bgr,
                2,
                lineType=cv2.LINE_AA,
            )
    return output


def to_display_image(
    buffer: np.ndarray,
    shape: ImageShape,
    color_order: ColorOrder = ColorOrder.BGR,
    scaling_coefficient: float = 255.0,
) -> np.ndarray:
    """Turn a flat rescaled buffer back into an HxWx3 BGR ``uint8`` image."""

    if shape.width is None or shape.height is None or shape.channels is None:
        raise ValueError("Buffer shape must be fully specified")
    image = buffer.reshape(shape.height, shape.width, shape.channels) * scaling_coefficient
    image = np.clip(np.rint(image), 0, 255).astype(np.uint8)
    if shape.channels == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if color_order is ColorOrder.RGB:
        return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    return image


def _window_open(title: str) -> bool:
    try:
        return cv2.getWindowProperty(title, cv2.WND_PROP_VISIBLE) >= 1
    except cv2.error:
        return False


def show_window(title: str, image: np.ndarray, width: int, height: int) -> None:
    """Show ``image`` in a fixed-size window and block until the user closes it."""

    cv2.namedWindow(title, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(title, width, height)
    cv2.imshow(title, image)
    LOGGER.info("Window '%s' opened; close it or press q to exit", title)
    try:
        while _window_open(title):
            key = cv2.waitKey(100) & 0xFF
            if key in QUIT_KEYS:
                LOGGER.info("Quit signal received from keyboard")
                break
    finally:
        cv2.destroyAllWindows()
