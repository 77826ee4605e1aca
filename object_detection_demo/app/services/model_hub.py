"""Resolve pretrained model names to cached weight files, downloading on first use."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

import requests

LOGGER = logging.getLogger(__name__)

MODEL_URLS = {
    "yolov8n": "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8n.pt",
    "yolov8s": "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8s.pt",
    "yolov8m": "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8m.pt",
    "yolov8l": "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8l.pt",
    "yolov8x": "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8x.pt",
}

CHUNK_SIZE = 1 << 20


class ModelHub:
    """Local cache of pretrained weights backed by HTTP downloads."""

    def __init__(
        self,
        cache_dir: Path,
        *,
        urls: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 60.0,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.urls = dict(MODEL_URLS if urls is None else urls)
        self.timeout = timeout
        self._session = session or requests.Session()

    def available(self) -> list[str]:
        return sorted(self.urls)

    def cached_path(self, model_name: str) -> Path:
        return self.cache_dir / f"{model_name}.pt"

    def resolve(self, model_name: str) -> Path:
        """Return the local weights file for ``model_name``, downloading it when absent."""

        if model_name not in self.urls:
            raise ValueError(
                f"Unknown model '{model_name}'. Available models: {', '.join(self.available())}"
            )
        target = self.cached_path(model_name)
        if target.is_file() and target.stat().st_size > 0:
            LOGGER.info("Using cached weights %s", target)
            return target
        self._download(self.urls[model_name], target)
        return target

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ModelHub":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _download(self, url: str, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_suffix(target.suffix + ".part")
        LOGGER.info("Downloading %s to %s", url, target)
        response = self._session.get(url, stream=True, timeout=self.timeout)
        try:
            response.raise_for_status()
            written = 0
            with temp_path.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
                        written += len(chunk)
        finally:
            response.close()
        if written == 0:
            temp_path.unlink(missing_ok=True)
            raise RuntimeError(f"Downloaded weights from {url} are empty")
        temp_path.replace(target)
        LOGGER.info("Model weights downloaded to %s (%d bytes)", target, written)
