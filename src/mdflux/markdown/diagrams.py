"""Lift fenced diagram sources out of the document tree."""

from __future__ import annotations

import xml.etree.ElementTree as ElementTree

from mdflux.core.exceptions import ExtractionError
from mdflux.markdown.fences import FencedCodeBlock
from mdflux.markdown.pipeline import NodeKind


class DiagramBlock(ElementTree.Element):
    """Placeholder node carrying the raw, unescaped source of a diagram."""

    def __init__(self, source: str = "", kind: NodeKind | str = NodeKind.MERMAID) -> None:
        super().__init__(kind.value if isinstance(kind, NodeKind) else str(kind))
        self.source = source


class DiagramBlockExtractor:
    """Replace fenced blocks of one language with :class:`DiagramBlock` nodes.

    The language match is exact and case-sensitive. All matching fences are
    collected in a single walk before any replacement takes place.
    """

    def __init__(self, language: str = "mermaid", kind: NodeKind | str = NodeKind.MERMAID) -> None:
        self.language = language
        self.kind = kind

    def __call__(self, root: ElementTree.Element) -> None:
        parent_map: dict[ElementTree.Element, ElementTree.Element] = {}
        pending: list[FencedCodeBlock] = []
        for node in root.iter():
            if isinstance(node, FencedCodeBlock) and node.language == self.language:
                pending.append(node)
            for child in node:
                parent_map[child] = node

        for block in pending:
            parent = parent_map.get(block)
            if parent is None:
                raise ExtractionError(
                    f"Fenced {self.language} block has no parent in the document tree."
                )
            self._replace(parent, block, DiagramBlock(block.code, self.kind))

    def _replace(
        self,
        parent: ElementTree.Element,
        block: ElementTree.Element,
        replacement: ElementTree.Element,
    ) -> None:
        replacement.tail = block.tail
        for index, child in enumerate(parent):
            if child is block:
                parent.insert(index, replacement)
                parent.remove(block)
                return
        raise ExtractionError(
            f"Fenced {self.language} block is not a child of its recorded parent."
        )


__all__ = ["DiagramBlock", "DiagramBlockExtractor"]
