"""Configuration utilities for the object detection demo."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOGGER = logging.getLogger(__name__)


class AppSettings(BaseSettings):
    """Application configuration sourced from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DETECTION_",
        case_sensitive=False,
        protected_namespaces=(),
    )

    cache_dir: Path = Field(
        default=Path("cache/pretrainedModels"),
        description="Directory holding downloaded model weights.",
    )
    model_name: str = Field(default="yolov8n", description="Name of the pretrained model to resolve.")
    image_path: Optional[Path] = Field(
        default=None,
        description="Image to run detection on. Defaults to the image bundled with Ultralytics.",
    )
    top_k: int = Field(default=20, ge=1)
    confidence_threshold: float = Field(default=0.25, ge=0.0, le=1.0)
    iou_threshold: float = Field(default=0.45, ge=0.0, le=1.0)
    device: str = Field(default="cpu", description="Torch device specifier passed to the model.")
    download_timeout: float = Field(default=60.0, gt=0.0)

    display_width: int = Field(default=1200, ge=1)
    display_height: int = Field(default=1200, ge=1)
    color_order: str = Field(default="bgr")
    scaling_coefficient: float = Field(default=255.0, gt=0.0)

    max_box_size: float = Field(default=300.0, gt=0.0, description="Boxes taller or wider than this are skipped.")
    show_labels: bool = Field(default=True, description="Draw class name and probability next to each box.")
    box_thickness: int = Field(default=3, ge=1)
    overlay_font_scale: float = Field(default=1.0, gt=0.0)
    box_color_bgr: List[int] = Field(default_factory=lambda: [0, 0, 255])
    label_color_bgr: List[int] = Field(default_factory=lambda: [255, 255, 255])

    window_title: str = Field(default="Object detection")
    display: bool = Field(default=True, description="Render OpenCV window when true.")
    output_path: Optional[Path] = Field(default=None, description="Write the annotated image here when set.")
    log_format: str = Field(default="text")
    log_level: str = Field(default="INFO")

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _expand_dir(cls, value: str | Path) -> Path:
        return Path(value).expanduser()

    @field_validator("image_path", "output_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None or value == "":
            return None
        return Path(value).expanduser()

    @field_validator("color_order")
    @classmethod
    def _check_color_order(cls, value: str) -> str:
        value = value.lower()
        if value not in {"bgr", "rgb"}:
            raise ValueError("color_order must be 'bgr' or 'rgb'")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        if value not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return value

    @field_validator("box_color_bgr", "label_color_bgr")
    @classmethod
    def _check_color(cls, value: List[int]) -> List[int]:
        if len(value) != 3 or any(not 0 <= channel <= 255 for channel in value):
            raise ValueError("colors must be three 0-255 values in BGR order")
        return value

    def resolved_image_path(self) -> Path:
        """Return the configured image, falling back to the Ultralytics sample asset."""

        if self.image_path is not None:
            return self.image_path
        from ultralytics.utils import ASSETS

        return Path(ASSETS) / "bus.jpg"


def _read_config_file(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    LOGGER.debug("Loaded %d settings from %s", len(payload), path)
    return payload


def load_settings(config_path: Optional[Path] = None, **overrides: object) -> AppSettings:
    """Return application settings, applying an optional YAML file and overrides.

    Values from ``overrides`` take precedence over the file, which in turn takes
    precedence over ``DETECTION_*`` environment variables.
    """

    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(_read_config_file(Path(config_path).expanduser()))
    values.update(overrides)
    return AppSettings(**values)
