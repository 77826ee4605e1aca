"""Shared data models for the object detection demo."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ColorOrder(str, Enum):
    """Channel order of a decoded or preprocessed image."""

    BGR = "bgr"
    RGB = "rgb"


@dataclass(frozen=True)
class DetectedObject:
    """Represents a single detected object with a normalized bounding box."""

    label: str
    probability: float
    x_min: float
    y_min: float
    x_max: float
    y_max: float
    class_id: int = -1


@dataclass(frozen=True)
class ImageShape:
    """Width, height and channel count of an image; ``None`` means infer from source."""

    width: Optional[int] = None
    height: Optional[int] = None
    channels: Optional[int] = None


@dataclass(frozen=True)
class PixelBox:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top
