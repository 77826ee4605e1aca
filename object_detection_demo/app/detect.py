"""Entry point for the single-image object detection demo."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from .config.settings import AppSettings, load_settings
from .models import ColorOrder, DetectedObject, ImageShape
from .services.detector import managed_session
from .services.model_hub import ModelHub
from .services.preprocessing import build_display_preprocessing
from .services.visualizer import (
    Overlay,
    OverlayStyle,
    plan_overlays,
    render_overlays,
    show_window,
    to_display_image,
)
from .utils.image_io import ImageLoader

LOGGER = logging.getLogger(__name__)


@dataclass
class DetectionReport:
    session_description: str
    detections: List[DetectedObject]
    shape: ImageShape
    overlays: List[Overlay]
    image: np.ndarray


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Object detection on a single image")
    parser.add_argument("--image", type=str, default=None, help="Image to run detection on")
    parser.add_argument("--model", type=str, default=None, help="Pretrained model name (e.g. yolov8n)")
    parser.add_argument("--cache-dir", type=str, default=None, help="Directory for downloaded weights")
    parser.add_argument("--top-k", type=int, default=None, help="Maximum number of detections to keep")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold")
    parser.add_argument("--device", type=str, default=None, help="Inference device (cpu, cuda:0, ...)")
    parser.add_argument("--hide-labels", action="store_true", help="Draw boxes without label text")
    parser.add_argument("--no-display", action="store_true", help="Disable OpenCV window display")
    parser.add_argument("--output", type=str, default=None, help="Save the annotated image to this path")
    parser.add_argument("--config", type=str, default=None, help="YAML settings file")
    parser.add_argument("--log-format", choices=["text", "json"], default=None, help="Logging format")
    return parser


def setup_logging(settings: AppSettings) -> None:
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.log_format == "json":
        formatter = logging.Formatter('{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}')
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=log_level, handlers=[handler])


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    overrides = {}
    if args.image:
        overrides["image_path"] = Path(args.image)
    if args.model:
        overrides["model_name"] = args.model
    if args.cache_dir:
        overrides["cache_dir"] = Path(args.cache_dir)
    if args.top_k is not None:
        overrides["top_k"] = args.top_k
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.device:
        overrides["device"] = args.device
    if args.hide_labels:
        overrides["show_labels"] = False
    if args.no_display:
        overrides["display"] = False
    if args.output:
        overrides["output_path"] = Path(args.output)
    if args.log_format:
        overrides["log_format"] = args.log_format

    config_path = Path(args.config) if args.config else None
    return load_settings(config_path, **overrides)


def build_overlay_style(settings: AppSettings) -> OverlayStyle:
    return OverlayStyle(
        show_labels=settings.show_labels,
        max_box_size=settings.max_box_size,
        box_color_bgr=tuple(settings.box_color_bgr),
        label_color_bgr=tuple(settings.label_color_bgr),
        thickness=settings.box_thickness,
        font_scale=settings.overlay_font_scale,
    )


def report_detections(detections: List[DetectedObject]) -> None:
    for detected in detections:
        print(f"Found {detected.label} with probability {detected.probability}")


def run_pipeline(
    settings: AppSettings,
    *,
    hub: Optional[ModelHub] = None,
    loader: Optional[ImageLoader] = None,
) -> DetectionReport:
    """Detect objects in the configured image and prepare the annotated display image."""

    image_path = settings.resolved_image_path()
    loader = loader or ImageLoader()
    owns_hub = hub is None
    hub = hub or ModelHub(settings.cache_dir, timeout=settings.download_timeout)
    try:
        with managed_session(
            hub,
            settings.model_name,
            confidence=settings.confidence_threshold,
            iou=settings.iou_threshold,
            device=settings.device,
            loader=loader,
        ) as session:
            description = repr(session)
            print(description)
            detections = session.detect(image_path, top_k=settings.top_k)
    finally:
        if owns_hub:
            hub.close()

    report_detections(detections)

    color_order = ColorOrder(settings.color_order)
    preprocessing = build_display_preprocessing(
        image_path,
        width=settings.display_width,
        height=settings.display_height,
        color_order=color_order,
        scaling_coefficient=settings.scaling_coefficient,
    )
    buffer, shape = preprocessing(loader)

    style = build_overlay_style(settings)
    overlays = plan_overlays(detections, shape, style)
    LOGGER.info("Drawing %d of %d detections", len(overlays), len(detections))
    display_image = to_display_image(buffer, shape, color_order, settings.scaling_coefficient)
    annotated = render_overlays(display_image, overlays, style)
    return DetectionReport(
        session_description=description,
        detections=detections,
        shape=shape,
        overlays=overlays,
        image=annotated,
    )


def run_detection(args: argparse.Namespace) -> int:
    settings = resolve_settings(args)
    setup_logging(settings)

    LOGGER.info("Starting object detection demo")
    report = run_pipeline(settings)

    if settings.output_path is not None:
        settings.output_path.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(settings.output_path), report.image):
            raise RuntimeError(f"Unable to write image: {settings.output_path}")
        LOGGER.info("Annotated image saved to %s", settings.output_path)

    if settings.display:
        show_window(settings.window_title, report.image, settings.display_width, settings.display_height)

    LOGGER.info("Object detection demo completed")
    return 0


def main() -> None:
    parser = build_arg_parser()
    args = parser.parse_args()

    def handle_interrupt(signum: int, frame: Optional[object]) -> None:  # pragma: no cover - signal handling
        LOGGER.warning("Received interrupt signal (%d), shutting down", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_interrupt)
    sys.exit(run_detection(args))


if __name__ == "__main__":  # pragma: no cover
    main()
