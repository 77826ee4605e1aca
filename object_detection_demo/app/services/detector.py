"""YOLO detection session wrapper."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Iterable, List, Optional

try:  # pragma: no cover - import guarded for environments without ultralytics
    from ultralytics import YOLO
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "ultralytics package is required for object detection. Install the project via "
        "`pip install -e .` before running detect.py."
    ) from exc

from ..models import DetectedObject
from ..utils.image_io import ImageLoader, PathLike
from .model_hub import ModelHub

LOGGER = logging.getLogger(__name__)


def rank_detections(detections: Iterable[DetectedObject], top_k: int) -> List[DetectedObject]:
    """Return at most ``top_k`` detections ordered by descending probability."""

    ordered = sorted(detections, key=lambda detected: detected.probability, reverse=True)
    return ordered[:top_k]


class DetectionSession:
    """Inference handle around a pretrained YOLO model.

    The session owns the loaded model until :meth:`close` is called. Use it as a
    context manager (or through :func:`managed_session`) so the model is released
    even when inference fails.
    """

    def __init__(
        self,
        model_path: Path,
        *,
        model_name: Optional[str] = None,
        confidence: float = 0.25,
        iou: float = 0.45,
        device: str = "cpu",
        loader: Optional[ImageLoader] = None,
    ) -> None:
        self.model_path = Path(model_path)
        self.model_name = model_name or self.model_path.stem
        self.confidence = confidence
        self.iou = iou
        self.device = device
        self.loader = loader or ImageLoader()
        LOGGER.info("Loading detection model from %s", self.model_path)
        self._model: Optional[Any] = YOLO(str(self.model_path))
        self._class_map = dict(self._model.names)

    @property
    def closed(self) -> bool:
        return self._model is None

    def __repr__(self) -> str:
        return (
            f"DetectionSession(model={self.model_name!r}, weights='{self.model_path}', "
            f"classes={len(self._class_map)}, device={self.device!r}, "
            f"conf={self.confidence}, iou={self.iou}, closed={self.closed})"
        )

    def detect(self, image_file: PathLike, top_k: int = 20) -> List[DetectedObject]:
        """Run inference on an image file and return the ``top_k`` most confident detections."""

        if self._model is None:
            raise RuntimeError("Detection session is closed")
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        image = self.loader.load(image_file)
        results = self._model.predict(
            image,
            verbose=False,
            conf=self.confidence,
            iou=self.iou,
            max_det=top_k,
            device=self.device,
        )
        detections: List[DetectedObject] = []
        for result in results:
            detections.extend(self._parse_result(result))
        ranked = rank_detections(detections, top_k)
        LOGGER.debug("Detected %d objects, keeping %d", len(detections), len(ranked))
        return ranked

    def close(self) -> None:
        if self._model is None:
            return
        LOGGER.info("Releasing detection model %s", self.model_name)
        self._model = None

    def __enter__(self) -> "DetectionSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _parse_result(self, result: Any) -> List[DetectedObject]:
        boxes = result.boxes
        if boxes is None or len(boxes) == 0:
            return []

        xyxyn = boxes.xyxyn.cpu().numpy().reshape(-1, 4)
        conf = boxes.conf.cpu().numpy().reshape(-1)
        cls = boxes.cls.cpu().numpy().astype(int).reshape(-1)
        names = result.names if result.names is not None else self._class_map

        parsed: List[DetectedObject] = []
        for index in range(len(cls)):
            class_id = int(cls[index])
            x_min, y_min, x_max, y_max = (float(value) for value in xyxyn[index])
            parsed.append(
                DetectedObject(
                    label=str(names.get(class_id, class_id)),
                    probability=float(conf[index]),
                    x_min=x_min,
                    y_min=y_min,
                    x_max=x_max,
                    y_max=y_max,
                    class_id=class_id,
                )
            )
        return parsed


def load_pretrained(hub: ModelHub, model_name: str, **kwargs: Any) -> DetectionSession:
    """Resolve ``model_name`` through the hub and open a detection session on it."""

    model_path = hub.resolve(model_name)
    return DetectionSession(model_path, model_name=model_name, **kwargs)


@contextmanager
def managed_session(hub: ModelHub, model_name: str, **kwargs: Any) -> Generator[DetectionSession, None, None]:
    """Context manager ensuring the detection session is released."""

    session = load_pretrained(hub, model_name, **kwargs)
    try:
        yield session
    finally:
        session.close()
