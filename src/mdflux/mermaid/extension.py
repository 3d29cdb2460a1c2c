"""Pipeline extension turning ```mermaid fences into rendered diagrams."""

from __future__ import annotations

import logging
from typing import Literal
import xml.etree.ElementTree as ElementTree

from mdflux.markdown.diagrams import DiagramBlock, DiagramBlockExtractor
from mdflux.markdown.pipeline import DocumentPipeline, NodeKind
from mdflux.mermaid.session import MermaidSession


logger = logging.getLogger(__name__)

MERMAID_LANGUAGE = "mermaid"
EXTRACTOR_PRIORITY = 100
RENDERER_PRIORITY = 100


class DiagramNodeRenderer:
    """Render :class:`DiagramBlock` nodes into the final HTML fragments.

    Without a session the raw source is wrapped for client-side rendering by
    the Mermaid script loaded in the page. With a session, the diagram is
    rendered to inline SVG; failures fall back to an error comment and the
    raw source in a ``<pre>`` block.
    """

    def __init__(self, session: MermaidSession | None = None, *, timeout: float | None = None) -> None:
        self.session = session
        self.timeout = timeout

    def __call__(self, node: ElementTree.Element) -> str:
        source = getattr(node, "source", "")
        if self.session is None:
            return f'<div class="mermaid">{source}</div>\n'

        result = self.session.try_render(source, timeout=self.timeout)
        if result.ok:
            return f'<div class="mermaid">{result.svg}</div>\n'

        logger.warning("Mermaid diagram failed to render: %s", result.error)
        return (
            f"<!-- mermaid render error: {result.error} -->\n"
            f'<pre class="mermaid-error"><code>{source}</code></pre>\n'
        )


class MermaidExtension:
    """Register the Mermaid extractor and node renderer on a pipeline."""

    def __init__(
        self,
        session: MermaidSession | None = None,
        *,
        render: Literal["client", "server"] | None = None,
        timeout: float | None = None,
    ) -> None:
        if render == "client":
            session = None
        self.session = session
        self.timeout = timeout

    @property
    def mode(self) -> Literal["client", "server"]:
        return "client" if self.session is None else "server"

    def extend(self, pipeline: DocumentPipeline) -> None:
        pipeline.register_transformer(
            DiagramBlockExtractor(MERMAID_LANGUAGE, NodeKind.MERMAID), EXTRACTOR_PRIORITY
        )
        pipeline.register_node_renderer(
            NodeKind.MERMAID,
            DiagramNodeRenderer(self.session, timeout=self.timeout),
            RENDERER_PRIORITY,
        )


__all__ = [
    "DiagramBlock",
    "DiagramBlockExtractor",
    "DiagramNodeRenderer",
    "EXTRACTOR_PRIORITY",
    "MERMAID_LANGUAGE",
    "MermaidExtension",
    "RENDERER_PRIORITY",
]
