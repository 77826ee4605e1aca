"""Declarative image preprocessing pipeline used to prepare the display image."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from ..models import ColorOrder, ImageShape
from ..utils.image_io import ImageLoader

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadStep:
    path: Path
    image_shape: ImageShape = field(default_factory=lambda: ImageShape(None, None, 3))
    color_order: ColorOrder = ColorOrder.BGR

    def apply(self, loader: ImageLoader) -> np.ndarray:
        image = loader.load(self.path)
        height, width = image.shape[:2]
        expected = self.image_shape
        if expected.width is not None and expected.width != width:
            raise ValueError(f"{self.path} is {width} pixels wide, expected {expected.width}")
        if expected.height is not None and expected.height != height:
            raise ValueError(f"{self.path} is {height} pixels high, expected {expected.height}")

        if expected.channels == 1:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)[:, :, np.newaxis]
        if expected.channels not in (None, 3):
            raise ValueError(f"Unsupported channel count: {expected.channels}")
        if self.color_order is ColorOrder.RGB:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return image


@dataclass(frozen=True)
class Resize:
    output_width: int
    output_height: int
    interpolation: int = cv2.INTER_LINEAR

    def apply(self, image: np.ndarray) -> np.ndarray:
        channels = image.shape[2] if image.ndim == 3 else 1
        resized = cv2.resize(
            image,
            (self.output_width, self.output_height),
            interpolation=self.interpolation,
        )
        # cv2.resize drops a trailing singleton channel axis
        return resized.reshape(self.output_height, self.output_width, channels)


@dataclass(frozen=True)
class Rescale:
    scaling_coefficient: float = 255.0

    def apply(self, tensor: np.ndarray) -> np.ndarray:
        return tensor / np.float32(self.scaling_coefficient)


@dataclass(frozen=True)
class Preprocessing:
    """Load step followed by image-space then tensor-space transforms."""

    load: LoadStep
    image_transforms: Sequence[Resize] = ()
    tensor_transforms: Sequence[Rescale] = ()

    def __call__(self, loader: Optional[ImageLoader] = None) -> Tuple[np.ndarray, ImageShape]:
        image = self.load.apply(loader or ImageLoader())
        for transform in self.image_transforms:
            image = transform.apply(image)

        height, width, channels = image.shape
        tensor = image.astype(np.float32).reshape(-1)
        for transform in self.tensor_transforms:
            tensor = transform.apply(tensor)

        shape = ImageShape(width=width, height=height, channels=channels)
        LOGGER.debug("Preprocessed %s into %s", self.load.path, shape)
        return tensor, shape


def build_display_preprocessing(
    path: Path,
    *,
    width: int,
    height: int,
    color_order: ColorOrder = ColorOrder.BGR,
    scaling_coefficient: float = 255.0,
) -> Preprocessing:
    """Return the pipeline that prepares ``path`` for display at ``width`` x ``height``."""

    return Preprocessing(
        load=LoadStep(path=path, image_shape=ImageShape(None, None, 3), color_order=color_order),
        image_transforms=(Resize(output_width=width, output_height=height),),
        tensor_transforms=(Rescale(scaling_coefficient=scaling_coefficient),),
    )
