from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

import cv2
import numpy as np
import pytest

from object_detection_demo.app.services import detector as detector_module

# label, probability, (x_min, y_min, x_max, y_max) normalized
RawDetection = Tuple[str, float, Tuple[float, float, float, float]]

CLASS_NAMES = {0: "person", 1: "bicycle", 2: "car", 3: "dog", 4: "cat"}


class FakeTensor:
    def __init__(self, values: Sequence) -> None:
        self._values = np.asarray(values, dtype=np.float32)

    def cpu(self) -> "FakeTensor":
        return self

    def numpy(self) -> np.ndarray:
        return self._values


class FakeBoxes:
    def __init__(self, raw: Sequence[RawDetection]) -> None:
        ids = {name: class_id for class_id, name in CLASS_NAMES.items()}
        self.xyxyn = FakeTensor([list(box) for _, _, box in raw] or np.zeros((0, 4)))
        self.conf = FakeTensor([prob for _, prob, _ in raw])
        self.cls = FakeTensor([ids[label] for label, _, _ in raw])
        self._count = len(raw)

    def __len__(self) -> int:
        return self._count


class FakeResult:
    def __init__(self, raw: Sequence[RawDetection]) -> None:
        self.boxes = FakeBoxes(raw)
        self.names = CLASS_NAMES


class FakeYOLO:
    """Stands in for ``ultralytics.YOLO`` and returns a fixed list of detections."""

    raw: List[RawDetection] = []
    error: Exception | None = None
    instances: List["FakeYOLO"] = []

    def __init__(self, weights: str) -> None:
        self.weights = weights
        self.names = CLASS_NAMES
        self.calls: List[dict] = []
        FakeYOLO.instances.append(self)

    def predict(self, image: np.ndarray, **kwargs: object) -> List[FakeResult]:
        self.calls.append({"shape": image.shape, **kwargs})
        if FakeYOLO.error is not None:
            raise FakeYOLO.error
        return [FakeResult(FakeYOLO.raw)]


@pytest.fixture()
def fake_yolo(monkeypatch: pytest.MonkeyPatch):
    FakeYOLO.raw = []
    FakeYOLO.error = None
    FakeYOLO.instances = []
    monkeypatch.setattr(detector_module, "YOLO", FakeYOLO)
    return FakeYOLO


@pytest.fixture()
def sample_image(tmp_path: Path) -> Path:
    """A 600x400 PNG with a horizontal gradient in every channel."""

    gradient = np.tile(np.linspace(0, 255, 600, dtype=np.uint8), (400, 1))
    image = np.dstack([gradient, gradient // 2, 255 - gradient])
    path = tmp_path / "sample.png"
    assert cv2.imwrite(str(path), image)
    return path


@pytest.fixture()
def weights_file(tmp_path: Path) -> Path:
    path = tmp_path / "cache" / "stub.pt"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"weights")
    return path
