from __future__ import annotations

import xml.etree.ElementTree as ElementTree

import pytest

from mdflux.core.exceptions import ConversionError
from mdflux.markdown import DocumentPipeline, NodeKind


def _append_node(tag: str):
    def transformer(root: ElementTree.Element) -> None:
        ElementTree.SubElement(root, tag)

    return transformer


def test_transformers_run_in_ascending_priority_order() -> None:
    pipeline = DocumentPipeline()
    calls: list[str] = []

    pipeline.register_transformer(lambda _root: calls.append("late"), 200)
    pipeline.register_transformer(lambda _root: calls.append("early"), 10)
    pipeline.register_transformer(lambda _root: calls.append("tie-first"), 100)
    pipeline.register_transformer(lambda _root: calls.append("tie-second"), 100)

    pipeline.convert("Hello")

    assert calls == ["early", "tie-first", "tie-second", "late"]


def test_transformers_run_once_per_document() -> None:
    pipeline = DocumentPipeline()
    seen: list[int] = []
    pipeline.register_transformer(lambda root: seen.append(len(root)), 100)

    pipeline.convert("one")
    pipeline.convert("two\n\nthree")

    assert seen == [1, 2]


def test_node_renderer_output_reaches_html_verbatim() -> None:
    pipeline = DocumentPipeline()
    pipeline.register_transformer(_append_node("x-widget"), 100)
    pipeline.register_node_renderer("x-widget", lambda _node: '<div class="w">a & <b></div>\n', 100)

    html = pipeline.convert("Intro")

    assert "<p>Intro</p>" in html
    assert '<div class="w">a & <b></div>' in html
    assert "x-widget" not in html


def test_lowest_priority_renderer_wins_for_a_kind() -> None:
    pipeline = DocumentPipeline()
    pipeline.register_transformer(_append_node(NodeKind.MERMAID.value), 100)
    pipeline.register_node_renderer(NodeKind.MERMAID, lambda _node: "<div>slow</div>\n", 500)
    pipeline.register_node_renderer(NodeKind.MERMAID, lambda _node: "<div>first</div>\n", 50)
    pipeline.register_node_renderer(NodeKind.MERMAID, lambda _node: "<div>second</div>\n", 50)

    html = pipeline.convert("text")

    assert "<div>first</div>" in html
    assert "second" not in html
    assert "slow" not in html


def test_render_counts_reset_between_conversions() -> None:
    pipeline = DocumentPipeline()
    pipeline.register_transformer(_append_node("x-widget"), 100)
    pipeline.register_node_renderer("x-widget", lambda _node: "<div>w</div>\n", 100)

    pipeline.convert("a")
    assert pipeline.rendered("x-widget") == 1

    pipeline.convert("b")
    assert pipeline.rendered("x-widget") == 1
    assert pipeline.rendered(NodeKind.MERMAID) == 0


def test_renderer_table_is_fixed_after_first_conversion() -> None:
    pipeline = DocumentPipeline()
    pipeline.convert("text")

    with pytest.raises(ConversionError):
        pipeline.register_node_renderer("x-widget", lambda _node: "", 100)


def test_use_delegates_registration_to_extension() -> None:
    class Recorder:
        def __init__(self) -> None:
            self.pipelines: list[DocumentPipeline] = []

        def extend(self, pipeline: DocumentPipeline) -> None:
            self.pipelines.append(pipeline)

    pipeline = DocumentPipeline()
    extension = Recorder()

    assert pipeline.use(extension) is pipeline
    assert extension.pipelines == [pipeline]


def test_raw_html_is_escaped_unless_unsafe() -> None:
    safe = DocumentPipeline().convert("a <span>x</span> b")
    unsafe = DocumentPipeline(unsafe=True).convert("a <span>x</span> b")

    assert "&lt;span&gt;" in safe
    assert "<span>x</span>" in unsafe


def test_transformer_errors_are_wrapped() -> None:
    pipeline = DocumentPipeline()

    def broken(_root: ElementTree.Element) -> None:
        raise KeyError("boom")

    pipeline.register_transformer(broken, 100)

    with pytest.raises(ConversionError, match="boom"):
        pipeline.convert("text")
