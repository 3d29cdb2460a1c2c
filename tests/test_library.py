from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import requests

from mdflux.core import cache as cache_module
from mdflux.core.cache import configure_cache
from mdflux.core.exceptions import LibraryNotFoundError
from mdflux.mermaid import library as library_module
from mdflux.mermaid.library import MERMAID_CDN_URL, MermaidLibrary


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class FakeHttp:
    def __init__(self, response: FakeResponse | Exception) -> None:
        self.response = response
        self.urls: list[str] = []
        self.closed = False

    def get(self, url: str, **_kwargs: Any) -> FakeResponse:
        self.urls.append(url)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def __enter__(self) -> FakeHttp:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def isolated_cache(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setattr(cache_module, "_CACHE", None)
    return configure_cache(tmp_path / "cache").root


def test_explicit_path_is_read(tmp_path: Path) -> None:
    path = tmp_path / "mermaid.min.js"
    path.write_text("window.mermaid = {};", encoding="utf-8")

    assert MermaidLibrary(path).load() == "window.mermaid = {};"


def test_explicit_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(LibraryNotFoundError):
        MermaidLibrary(tmp_path / "absent.js").load()


def test_download_is_cached(isolated_cache: Path) -> None:
    http = FakeHttp(FakeResponse(200, "/* mermaid */"))

    library = MermaidLibrary(session=http)  # type: ignore[arg-type]
    assert library.load() == "/* mermaid */"
    assert library.cache_path().read_text(encoding="utf-8") == "/* mermaid */"
    assert library.cache_path().is_relative_to(isolated_cache)

    offline = MermaidLibrary(session=FakeHttp(requests.ConnectionError("offline")))  # type: ignore[arg-type]
    assert offline.load() == "/* mermaid */"
    assert http.urls == [MERMAID_CDN_URL]


def test_owned_http_session_is_closed(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[FakeHttp] = []

    def factory() -> FakeHttp:
        created.append(FakeHttp(FakeResponse(200, "/* fresh */")))
        return created[-1]

    monkeypatch.setattr(library_module.requests, "Session", factory)

    assert MermaidLibrary().load() == "/* fresh */"
    assert len(created) == 1
    assert created[0].closed


def test_injected_http_session_is_left_open() -> None:
    http = FakeHttp(FakeResponse(200, "/* shared */"))

    MermaidLibrary(session=http).load()  # type: ignore[arg-type]

    assert not http.closed


def test_download_failures_raise() -> None:
    with pytest.raises(LibraryNotFoundError, match="HTTP 404"):
        MermaidLibrary(session=FakeHttp(FakeResponse(404))).load()  # type: ignore[arg-type]
    with pytest.raises(LibraryNotFoundError, match="offline"):
        MermaidLibrary(
            session=FakeHttp(requests.ConnectionError("offline"))  # type: ignore[arg-type]
        ).load()
