"""Assemble complete HTML documents from Markdown sources."""

from __future__ import annotations

import logging
from pathlib import Path

from mdflux.core.config import Config
from mdflux.core.exceptions import ConversionError
from mdflux.core.templates import load_resource, render_template
from mdflux.d2 import D2Extension, D2Renderer
from mdflux.markdown.cjk import CJKExtension
from mdflux.markdown.extensions import resolve_markdown_extensions
from mdflux.markdown.pipeline import DocumentPipeline, NodeKind
from mdflux.mermaid.extension import MermaidExtension
from mdflux.mermaid.library import MERMAID_ESM_URL
from mdflux.mermaid.session import MermaidSession


logger = logging.getLogger(__name__)

DOCUMENT_TEMPLATE = "document.html.j2"
STYLES_RESOURCE = "styles.css"

KATEX_VERSION = "0.16.11"
KATEX_BASE_URL = f"https://cdn.jsdelivr.net/npm/katex@{KATEX_VERSION}/dist"
KATEX_CSS_URL = f"{KATEX_BASE_URL}/katex.min.css"
KATEX_JS_URL = f"{KATEX_BASE_URL}/katex.min.js"
KATEX_AUTORENDER_URL = f"{KATEX_BASE_URL}/contrib/auto-render.min.js"
MATH_MARKER = 'class="arithmatex"'


class Converter:
    """Convert Markdown into a styled, standalone HTML document.

    ``session`` renders diagrams to inline SVG when the configuration asks for
    server-side rendering. Without a session, diagrams are left to the Mermaid
    script the document loads in the reader's browser.
    """

    def __init__(self, config: Config | None = None, *, session: MermaidSession | None = None) -> None:
        self.config = config or Config()
        names, extension_configs = resolve_markdown_extensions(
            self.config.extensions, self.config.html
        )
        self.pipeline = DocumentPipeline(
            names,
            extension_configs,
            unsafe=self.config.html.unsafe,
            xhtml=self.config.html.xhtml,
        )
        self.mermaid: MermaidExtension | None = None
        if self.config.extensions.mermaid:
            self.mermaid = MermaidExtension(session, render=self.config.extensions.mermaid_render)
            self.pipeline.use(self.mermaid)
        d2 = self.config.extensions.d2
        if d2.enabled:
            self.pipeline.use(
                D2Extension(
                    D2Renderer(layout=d2.layout, theme_id=d2.theme_id, executable=d2.executable)
                )
            )
        line_breaks = self.config.html.east_asian_line_breaks
        if self.config.extensions.cjk and line_breaks == "none":
            line_breaks = "simple"
        if self.config.extensions.cjk or line_breaks != "none":
            self.pipeline.use(CJKExtension(line_breaks, escaped_space=self.config.extensions.cjk))
        self._styles = load_resource(STYLES_RESOURCE)

    def convert_body(self, source: str) -> str:
        """Return the HTML body for ``source`` without the document wrapper."""
        return self.pipeline.convert(source)

    def convert(self, source: str) -> str:
        """Return a complete HTML document for ``source``."""
        body = self.convert_body(source)
        diagrams = self.pipeline.rendered(NodeKind.MERMAID)
        loader = bool(diagrams) and self.mermaid is not None and self.mermaid.mode == "client"
        math = self.config.extensions.katex and MATH_MARKER in body
        logger.debug("Converted document with %d mermaid diagram(s)", diagrams)
        return render_template(
            DOCUMENT_TEMPLATE,
            xhtml=self.config.html.xhtml,
            theme=self.config.theme,
            title=self.config.title,
            styles=self._styles,
            body=body,
            mermaid_loader=loader,
            mermaid_url=MERMAID_ESM_URL,
            math_loader=math,
            katex_css_url=KATEX_CSS_URL,
            katex_js_url=KATEX_JS_URL,
            katex_autorender_url=KATEX_AUTORENDER_URL,
        )

    def convert_file(self, path: str | Path) -> str:
        """Read ``path`` as UTF-8 Markdown and return the HTML document."""
        try:
            source = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConversionError(f"Unable to read input '{path}': {exc}") from exc
        return self.convert(source)


__all__ = ["Converter"]
