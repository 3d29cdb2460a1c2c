from __future__ import annotations

import xml.etree.ElementTree as ElementTree

from mdflux.markdown import DocumentPipeline, FencedCodeBlock


def _collect_fences(source: str) -> tuple[str, list[FencedCodeBlock]]:
    pipeline = DocumentPipeline()
    found: list[FencedCodeBlock] = []

    def collect(root: ElementTree.Element) -> None:
        found.extend(node for node in root.iter() if isinstance(node, FencedCodeBlock))

    pipeline.register_transformer(collect, 100)
    return pipeline.convert(source), found


def test_fence_becomes_tree_node_with_language_and_raw_code() -> None:
    _, fences = _collect_fences("```mermaid\ngraph TD\n  A-->B\n```\n")

    assert len(fences) == 1
    assert fences[0].language == "mermaid"
    assert fences[0].code == "graph TD\n  A-->B\n"


def test_fence_serialises_as_escaped_code_block() -> None:
    html, _ = _collect_fences("```python\nprint('<x> & y')\n```\n")

    assert "<pre><code class=\"language-python\">print('&lt;x&gt; &amp; y')\n</code></pre>" in html


def test_fence_without_language() -> None:
    html, fences = _collect_fences("~~~\nplain\n~~~\n")

    assert fences[0].language == ""
    assert "<pre><code>plain\n</code></pre>" in html


def test_fence_spanning_blank_lines() -> None:
    html, fences = _collect_fences("```text\nfirst\n\n\nsecond\n```\n\nAfter")

    assert fences[0].code == "first\n\n\nsecond\n"
    assert "<p>After</p>" in html


def test_text_before_fence_in_same_block_is_parsed() -> None:
    html, fences = _collect_fences("Intro line\n```sh\nls\n```\nOutro")

    assert "<p>Intro line</p>" in html
    assert fences[0].code == "ls\n"
    assert "<p>Outro</p>" in html


def test_empty_fence_has_empty_code() -> None:
    _, fences = _collect_fences("```mermaid\n```\n")

    assert len(fences) == 1
    assert fences[0].code == ""


def test_unclosed_fence_falls_back_to_paragraph() -> None:
    html, fences = _collect_fences("```\nnot closed")

    assert fences == []
    assert "<pre>" not in html
    assert "not closed" in html


def test_markdown_inside_fence_is_not_processed() -> None:
    html, _ = _collect_fences("```\n*not emphasis*\n```\n")

    assert "<em>" not in html
    assert "*not emphasis*" in html


def test_fence_content_keeps_tabs_and_whitespace_lines() -> None:
    _, fences = _collect_fences("```text\n\tindented\n   \nend\n```\n")

    assert fences[0].code == "\tindented\n   \nend\n"


def test_fence_content_normalises_windows_line_endings() -> None:
    _, fences = _collect_fences("```text\r\none\r\ntwo\r\n```\r\n")

    assert fences[0].code == "one\ntwo\n"


def test_fence_content_is_captured_before_raw_html_extraction() -> None:
    pipeline = DocumentPipeline(unsafe=True)
    found: list[FencedCodeBlock] = []
    pipeline.register_transformer(
        lambda root: found.extend(n for n in root.iter() if isinstance(n, FencedCodeBlock)), 100
    )

    html = pipeline.convert("```html\n<p>x</p>\n\n<div>note</div>\n```\n\n<aside>raw</aside>\n")

    assert found[0].code == "<p>x</p>\n\n<div>note</div>\n"
    assert "&lt;div&gt;note&lt;/div&gt;" in html
    assert "<aside>raw</aside>" in html


def test_fence_inside_raw_html_block_is_restored_as_code() -> None:
    pipeline = DocumentPipeline(unsafe=True)

    html = pipeline.convert("<div>\n```sh\necho <hi>\n```\n</div>\n")

    assert '<pre><code class="language-sh">echo &lt;hi&gt;\n</code></pre>' in html
    assert "\ue000" not in html


def test_fence_placeholders_reset_between_documents() -> None:
    pipeline = DocumentPipeline()
    seen: list[str] = []
    pipeline.register_transformer(
        lambda root: seen.extend(n.code for n in root.iter() if isinstance(n, FencedCodeBlock)), 100
    )

    pipeline.convert("```\nfirst\n```\n")
    pipeline.convert("```\nsecond\n```\n")

    assert seen == ["first\n", "second\n"]
