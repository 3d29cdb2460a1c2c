"""Render ```d2 fences to inline SVG with the ``d2`` command-line tool.

Rendered diagrams are cached under the ``d2`` namespace of the cache
directory, keyed by layout engine, theme and source.
"""

from __future__ import annotations

import hashlib
import html
import logging
from pathlib import Path
import re
import shutil
import subprocess
import xml.etree.ElementTree as ElementTree

from mdflux.core.cache import get_cache_dir
from mdflux.core.exceptions import DiagramRenderError
from mdflux.markdown.diagrams import DiagramBlockExtractor
from mdflux.markdown.pipeline import DocumentPipeline, NodeKind


logger = logging.getLogger(__name__)

D2_LANGUAGE = "d2"
D2_EXECUTABLE = "d2"
D2_LAYOUTS = ("dagre", "elk")
CACHE_NAMESPACE = "d2"
EXTRACTOR_PRIORITY = 100
RENDERER_PRIORITY = 100

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>\s*")


class D2Renderer:
    """Run ``d2`` on diagram sources and return the SVG it prints."""

    def __init__(
        self,
        *,
        layout: str = "dagre",
        theme_id: int = 0,
        executable: str | None = None,
        timeout: float | None = 60.0,
        use_cache: bool = True,
    ) -> None:
        self.layout = layout if layout in D2_LAYOUTS else "dagre"
        self.theme_id = theme_id
        self.executable = executable
        self.timeout = timeout
        self.use_cache = use_cache

    def command(self, executable: str) -> list[str]:
        return [executable, f"--layout={self.layout}", f"--theme={self.theme_id}", "-", "-"]

    def cache_path(self, source: str) -> Path:
        digest = hashlib.sha256(
            f"{self.layout}\0{self.theme_id}\0{source}".encode("utf-8")
        ).hexdigest()
        return get_cache_dir().path(CACHE_NAMESPACE, f"{digest}.svg", create=False)

    def render(self, source: str) -> str:
        """Return the SVG markup for ``source`` or raise :class:`DiagramRenderError`."""
        cached = self.cache_path(source) if self.use_cache else None
        if cached is not None and cached.is_file():
            return cached.read_text(encoding="utf-8")

        executable = self.executable or shutil.which(D2_EXECUTABLE)
        if executable is None:
            raise DiagramRenderError("d2 executable not found. Install d2 to render D2 diagrams.")

        try:
            process = subprocess.run(
                self.command(executable),
                input=source,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise DiagramRenderError(f"d2 timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise DiagramRenderError(f"Failed to execute d2: {exc}") from exc

        if process.returncode != 0:
            detail = (process.stderr or "").strip() or "no output"
            raise DiagramRenderError(f"d2 exited with status {process.returncode}: {detail}")

        svg = _XML_DECLARATION_RE.sub("", process.stdout or "")
        if not svg.lstrip().startswith("<svg"):
            raise DiagramRenderError("d2 returned invalid SVG")

        if cached is not None:
            try:
                cached.parent.mkdir(parents=True, exist_ok=True)
                cached.write_text(svg, encoding="utf-8")
            except OSError as exc:
                logger.warning("Failed to cache D2 diagram at %s: %s", cached, exc)
        return svg


class D2NodeRenderer:
    """Render D2 diagram nodes to inline SVG, falling back to the escaped source."""

    def __init__(self, renderer: D2Renderer) -> None:
        self.renderer = renderer

    def __call__(self, node: ElementTree.Element) -> str:
        source = getattr(node, "source", "")
        try:
            svg = self.renderer.render(source)
        except DiagramRenderError as exc:
            logger.warning("D2 diagram failed to render: %s", exc)
            message = str(exc).replace("--", "- -")
            return (
                f"<!-- d2 render error: {message} -->\n"
                f'<pre class="d2-error"><code>{html.escape(source, quote=False)}</code></pre>\n'
            )
        return f'<div class="d2">{svg}</div>\n'


class D2Extension:
    """Register the D2 extractor and node renderer on a pipeline."""

    def __init__(self, renderer: D2Renderer | None = None) -> None:
        self.renderer = renderer or D2Renderer()

    def extend(self, pipeline: DocumentPipeline) -> None:
        pipeline.register_transformer(
            DiagramBlockExtractor(D2_LANGUAGE, NodeKind.D2), EXTRACTOR_PRIORITY
        )
        pipeline.register_node_renderer(
            NodeKind.D2, D2NodeRenderer(self.renderer), RENDERER_PRIORITY
        )


__all__ = [
    "D2Extension",
    "D2NodeRenderer",
    "D2Renderer",
    "D2_LANGUAGE",
]
