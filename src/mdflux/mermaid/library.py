"""Locate the Mermaid JavaScript bundle embedded in the render page."""

from __future__ import annotations

import logging
from pathlib import Path

import requests

from mdflux.core.exceptions import LibraryNotFoundError
from mdflux.core.cache import get_cache_dir


logger = logging.getLogger(__name__)

MERMAID_VERSION = "11"
MERMAID_CDN_URL = f"https://cdn.jsdelivr.net/npm/mermaid@{MERMAID_VERSION}/dist/mermaid.min.js"
MERMAID_ESM_URL = f"https://cdn.jsdelivr.net/npm/mermaid@{MERMAID_VERSION}/dist/mermaid.esm.min.mjs"
CACHE_NAMESPACE = "mermaid"
_ASSET_NAME = "mermaid.min.js"


class MermaidLibrary:
    """Resolve the Mermaid source from a local file or a cached download."""

    _USER_AGENT = "mdflux-mermaid-fetcher"

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        url: str = MERMAID_CDN_URL,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.path = Path(path).expanduser() if path else None
        self.url = url
        self._session = session
        self._timeout = timeout

    def load(self) -> str:
        """Return the Mermaid library source."""
        if self.path is not None:
            try:
                return self.path.read_text(encoding="utf-8")
            except OSError as exc:
                raise LibraryNotFoundError(
                    f"Unable to read Mermaid library '{self.path}': {exc}"
                ) from exc

        cached = self.cache_path()
        if cached.is_file():
            return cached.read_text(encoding="utf-8")
        return self._download(cached)

    def cache_path(self) -> Path:
        return get_cache_dir().path(CACHE_NAMESPACE, MERMAID_VERSION, _ASSET_NAME, create=False)

    def _download(self, target: Path) -> str:
        logger.info("Downloading Mermaid library from %s", self.url)
        try:
            if self._session is not None:
                response = self._get(self._session)
            else:
                with requests.Session() as client:
                    response = self._get(client)
        except requests.RequestException as exc:
            raise LibraryNotFoundError(
                f"Unable to download Mermaid library from '{self.url}': {exc}"
            ) from exc
        if response.status_code >= 400:
            raise LibraryNotFoundError(
                f"Unable to download Mermaid library from '{self.url}': "
                f"HTTP {response.status_code}"
            )

        source = response.text
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source, encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to cache Mermaid library at %s: %s", target, exc)
        return source

    def _get(self, client: requests.Session) -> requests.Response:
        return client.get(
            self.url,
            headers={"User-Agent": self._USER_AGENT},
            timeout=self._timeout,
        )


def load_mermaid_library(path: str | Path | None = None) -> str:
    """Return the Mermaid library source, downloading it on first use."""
    return MermaidLibrary(path).load()


__all__ = [
    "MERMAID_CDN_URL",
    "MERMAID_ESM_URL",
    "MERMAID_VERSION",
    "MermaidLibrary",
    "load_mermaid_library",
]
