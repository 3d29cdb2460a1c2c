"""Mermaid diagram support: fence extraction, rendering and the browser session."""

from __future__ import annotations

from .extension import DiagramBlock, DiagramBlockExtractor, DiagramNodeRenderer, MermaidExtension
from .library import MermaidLibrary, load_mermaid_library
from .session import MermaidSession, RenderResult, SessionState


__all__ = [
    "DiagramBlock",
    "DiagramBlockExtractor",
    "DiagramNodeRenderer",
    "MermaidExtension",
    "MermaidLibrary",
    "MermaidSession",
    "RenderResult",
    "SessionState",
    "load_mermaid_library",
]
