#!/usr/bin/env python3
"""Prefetch pretrained weights into the model cache."""
from __future__ import annotations

import argparse
from pathlib import Path

from object_detection_demo.app.config.settings import load_settings
from object_detection_demo.app.services.model_hub import MODEL_URLS, ModelHub


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download pretrained detection weights")
    parser.add_argument("--model", choices=sorted(MODEL_URLS), default=None, help="Model to download")
    parser.add_argument("--cache-dir", type=Path, default=None, help="Destination cache directory")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    overrides = {}
    if args.model:
        overrides["model_name"] = args.model
    if args.cache_dir:
        overrides["cache_dir"] = args.cache_dir
    settings = load_settings(**overrides)
    with ModelHub(settings.cache_dir, timeout=settings.download_timeout) as hub:
        target = hub.resolve(settings.model_name)
    print(f"Model weights available at {target}")


if __name__ == "__main__":
    main()
