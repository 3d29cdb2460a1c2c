"""Document pipeline with prioritised tree transformers and node renderers.

Python-Markdown orders processors by descending priority. The pipeline keeps
its own registries where a lower priority value runs first, and bridges them
into Python-Markdown through two tree processors:

* the transformer stage runs before inline processing and calls every
  registered transformer once per document, in ascending priority;
* the node-render stage runs after inline processing and replaces each
  element whose tag matches a registered node kind with the HTML fragment
  produced by the renderer for that kind.

Rendered fragments are stored in the raw HTML stash so they reach the output
verbatim.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
import itertools
import logging
from typing import Any, Protocol, runtime_checkable
import xml.etree.ElementTree as ElementTree

import markdown
from markdown.treeprocessors import Treeprocessor

from mdflux.core.exceptions import ConversionError, MdfluxError
from mdflux.markdown.fences import FencedCodeNodesExtension


logger = logging.getLogger(__name__)

Transformer = Callable[[ElementTree.Element], None]
NodeRenderer = Callable[[ElementTree.Element], str]

# Python-Markdown priorities bracketing the inline stage (20).
TRANSFORM_STAGE_PRIORITY = 25
RENDER_STAGE_PRIORITY = 15


class NodeKind(str, Enum):
    """Node kinds dispatched to registered node renderers."""

    MERMAID = "mdflux-mermaid"
    D2 = "mdflux-d2"


@runtime_checkable
class Extension(Protocol):
    """Objects that plug transformers and node renderers into a pipeline."""

    def extend(self, pipeline: DocumentPipeline) -> None: ...


def _kind_key(kind: NodeKind | str) -> str:
    return kind.value if isinstance(kind, NodeKind) else str(kind)


class _TransformerStage(Treeprocessor):
    def __init__(self, md: markdown.Markdown, pipeline: DocumentPipeline) -> None:
        super().__init__(md)
        self.pipeline = pipeline

    def run(self, root: ElementTree.Element) -> None:  # type: ignore[override]
        for transformer in self.pipeline.transformers():
            transformer(root)


class _NodeRenderStage(Treeprocessor):
    def __init__(self, md: markdown.Markdown, pipeline: DocumentPipeline) -> None:
        super().__init__(md)
        self.pipeline = pipeline

    def run(self, root: ElementTree.Element) -> None:  # type: ignore[override]
        table = self.pipeline.renderer_table()
        if not table:
            return

        pending: list[tuple[ElementTree.Element, ElementTree.Element]] = []
        for parent in root.iter():
            for child in parent:
                if isinstance(child.tag, str) and child.tag in table:
                    pending.append((parent, child))

        for parent, node in pending:
            fragment = table[node.tag](node)
            self.pipeline.record_render(node.tag)
            placeholder = ElementTree.Element("p")
            placeholder.text = self.md.htmlStash.store(fragment)
            placeholder.tail = node.tail
            index = list(parent).index(node)
            parent.remove(node)
            parent.insert(index, placeholder)


class DocumentPipeline:
    """Markdown to HTML conversion with pluggable transformers and renderers."""

    def __init__(
        self,
        extensions: Iterable[str | markdown.extensions.Extension] | None = None,
        extension_configs: Mapping[str, Mapping[str, Any]] | None = None,
        *,
        unsafe: bool = False,
        xhtml: bool = False,
    ) -> None:
        requested = [ext for ext in (extensions or ()) if ext != "fenced_code"]
        self._order = itertools.count()
        self._transformers: list[tuple[int, int, Transformer]] = []
        self._renderers: list[tuple[str, int, int, NodeRenderer]] = []
        self._table: dict[str, NodeRenderer] | None = None
        self._counts: Counter[str] = Counter()

        try:
            self.md = markdown.Markdown(
                extensions=[*requested, FencedCodeNodesExtension()],
                extension_configs={key: dict(value) for key, value in (extension_configs or {}).items()},
                output_format="xhtml" if xhtml else "html",
            )
        except Exception as exc:
            raise ConversionError(f"Failed to initialize Markdown processor: {exc}") from exc

        if not unsafe:
            self.md.preprocessors.deregister("html_block", strict=False)
            self.md.inlinePatterns.deregister("html", strict=False)

        self.md.treeprocessors.register(
            _TransformerStage(self.md, self), "mdflux_transformers", TRANSFORM_STAGE_PRIORITY
        )
        self.md.treeprocessors.register(
            _NodeRenderStage(self.md, self), "mdflux_node_renderers", RENDER_STAGE_PRIORITY
        )

    def register_transformer(self, transformer: Transformer, priority: int) -> None:
        """Run ``transformer`` on every parsed document; lower priorities run first."""
        self._transformers.append((priority, next(self._order), transformer))

    def register_node_renderer(
        self, kind: NodeKind | str, renderer: NodeRenderer, priority: int
    ) -> None:
        """Render nodes of ``kind`` with ``renderer``.

        When several renderers target the same kind, the lowest priority wins
        and ties go to the earliest registration. The dispatch table is fixed
        at the first conversion.
        """
        if self._table is not None:
            raise ConversionError(
                f"Cannot register a renderer for '{_kind_key(kind)}' after the first conversion."
            )
        self._renderers.append((_kind_key(kind), priority, next(self._order), renderer))

    def use(self, extension: Extension) -> DocumentPipeline:
        """Let ``extension`` register its transformers and renderers."""
        extension.extend(self)
        return self

    def transformers(self) -> list[Transformer]:
        return [entry[2] for entry in sorted(self._transformers, key=lambda e: (e[0], e[1]))]

    def renderer_table(self) -> dict[str, NodeRenderer]:
        if self._table is None:
            table: dict[str, NodeRenderer] = {}
            for kind, _priority, _order, renderer in sorted(
                self._renderers, key=lambda e: (e[1], e[2])
            ):
                table.setdefault(kind, renderer)
            self._table = table
        return self._table

    def record_render(self, kind: str) -> None:
        self._counts[kind] += 1

    def rendered(self, kind: NodeKind | str) -> int:
        """Return how many nodes of ``kind`` the last conversion rendered."""
        return self._counts[_kind_key(kind)]

    def convert(self, source: str) -> str:
        """Convert ``source`` into an HTML body fragment."""
        self._counts.clear()
        self.md.reset()
        try:
            return self.md.convert(source)
        except MdfluxError:
            raise
        except Exception as exc:
            raise ConversionError(f"Failed to convert Markdown source: {exc}") from exc


__all__ = [
    "DocumentPipeline",
    "Extension",
    "NodeKind",
    "NodeRenderer",
    "RENDER_STAGE_PRIORITY",
    "TRANSFORM_STAGE_PRIORITY",
    "Transformer",
]
