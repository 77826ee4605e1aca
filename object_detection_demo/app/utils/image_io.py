"""Image file utilities shared by inference and display."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Union

try:  # pragma: no cover - import guarded for optional dependency
    import cv2
    import numpy as np
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "opencv-python and numpy are required for image loading. Install the project "
        "via `pip install -e .` before running the demo."
    ) from exc

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_image(path: PathLike) -> np.ndarray:
    """Decode an image file into an HxWx3 BGR ``uint8`` array."""

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise RuntimeError(f"Unable to read image: {path}")
    LOGGER.info("Image %s decoded (%dx%d)", path, image.shape[1], image.shape[0])
    return image


class ImageLoader:
    """Decode each image file once and hand out copies of the cached pixels."""

    def __init__(self) -> None:
        self._cache: Dict[Path, np.ndarray] = {}

    def load(self, path: PathLike) -> np.ndarray:
        key = Path(path).resolve()
        if key not in self._cache:
            self._cache[key] = read_image(key)
        else:
            LOGGER.debug("Reusing decoded image %s", key)
        return self._cache[key].copy()

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return Path(path).resolve() in self._cache
