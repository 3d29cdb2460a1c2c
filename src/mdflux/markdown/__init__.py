"""Markdown parsing layer: fence nodes, diagram extraction and the extensible document pipeline."""

from __future__ import annotations

from .cjk import CJKExtension, EastAsianLineBreaks
from .diagrams import DiagramBlock, DiagramBlockExtractor
from .fences import FencedCodeBlock, FencedCodeNodesExtension, FencedCodeProcessor
from .pipeline import DocumentPipeline, Extension, NodeKind, NodeRenderer, Transformer


__all__ = [
    "CJKExtension",
    "DiagramBlock",
    "DiagramBlockExtractor",
    "DocumentPipeline",
    "EastAsianLineBreaks",
    "Extension",
    "FencedCodeBlock",
    "FencedCodeNodesExtension",
    "FencedCodeProcessor",
    "NodeKind",
    "NodeRenderer",
    "Transformer",
]
