from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from object_detection_demo.app.services.model_hub import MODEL_URLS, ModelHub

URLS = {"stub": "http://example.invalid/stub.pt"}


def build_response(chunks):
    response = MagicMock()
    response.iter_content.return_value = iter(chunks)
    return response


def test_resolve_reuses_cached_weights(weights_file: Path) -> None:
    session = MagicMock()
    hub = ModelHub(weights_file.parent, urls=URLS, session=session)

    assert hub.resolve("stub") == weights_file
    session.get.assert_not_called()


def test_resolve_downloads_missing_weights(tmp_path: Path) -> None:
    session = MagicMock()
    session.get.return_value = build_response([b"abc", b"", b"def"])
    hub = ModelHub(tmp_path / "cache", urls=URLS, session=session, timeout=5)

    target = hub.resolve("stub")

    assert target == tmp_path / "cache" / "stub.pt"
    assert target.read_bytes() == b"abcdef"
    assert not (tmp_path / "cache" / "stub.pt.part").exists()
    session.get.assert_called_once_with(URLS["stub"], stream=True, timeout=5)


def test_resolve_replaces_empty_cache_file(tmp_path: Path) -> None:
    cache = tmp_path / "cache"
    cache.mkdir()
    (cache / "stub.pt").write_bytes(b"")
    session = MagicMock()
    session.get.return_value = build_response([b"weights"])
    hub = ModelHub(cache, urls=URLS, session=session)

    assert hub.resolve("stub").read_bytes() == b"weights"


def test_resolve_rejects_unknown_model(tmp_path: Path) -> None:
    hub = ModelHub(tmp_path, session=MagicMock())

    with pytest.raises(ValueError, match="yolov8n"):
        hub.resolve("ssd")


def test_http_errors_propagate(tmp_path: Path) -> None:
    response = build_response([])
    response.raise_for_status.side_effect = requests.HTTPError("404")
    session = MagicMock()
    session.get.return_value = response
    hub = ModelHub(tmp_path, urls=URLS, session=session)

    with pytest.raises(requests.HTTPError):
        hub.resolve("stub")
    assert not (tmp_path / "stub.pt").exists()
    response.close.assert_called_once()


def test_empty_download_is_rejected(tmp_path: Path) -> None:
    session = MagicMock()
    session.get.return_value = build_response([])
    hub = ModelHub(tmp_path, urls=URLS, session=session)

    with pytest.raises(RuntimeError, match="empty"):
        hub.resolve("stub")
    assert not (tmp_path / "stub.pt.part").exists()


def test_context_manager_closes_session(tmp_path: Path) -> None:
    session = MagicMock()

    with ModelHub(tmp_path, session=session) as hub:
        assert hub.available() == sorted(MODEL_URLS)

    session.close.assert_called_once()
