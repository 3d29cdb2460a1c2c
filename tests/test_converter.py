from __future__ import annotations

from pathlib import Path

import pytest

from mdflux.converter import Converter
from mdflux.core.config import Config, ExtensionsConfig, HTMLConfig
from mdflux.core.exceptions import ConversionError
from mdflux.mermaid import RenderResult


DIAGRAM = "```mermaid\ngraph LR\n  A-->B\n```\n"


class FakeSession:
    def __init__(self) -> None:
        self.sources: list[str] = []

    def try_render(self, source: str, *, timeout: float | None = None) -> RenderResult:
        self.sources.append(source)
        return RenderResult(svg='<svg class="rendered"></svg>')


def test_document_wrapper_carries_title_theme_and_styles() -> None:
    html = Converter(Config(title="Notes", theme="dark")).convert("# Heading\n\nBody text.")

    assert html.startswith("<!DOCTYPE html>")
    assert '<html lang="en" data-theme="dark">' in html
    assert "<title>Notes</title>" in html
    assert "--code-bg" in html
    assert "<h1>Heading</h1>" in html
    assert "<p>Body text.</p>" in html


def test_title_is_escaped() -> None:
    html = Converter(Config(title="A & <B>")).convert("text")

    assert "<title>A &amp; &lt;B&gt;</title>" in html


def test_xhtml_document() -> None:
    html = Converter(Config(html=HTMLConfig(xhtml=True))).convert("line")

    assert html.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert 'xmlns="http://www.w3.org/1999/xhtml"' in html


def test_generic_extensions_follow_configuration() -> None:
    source = "| a | b |\n|---|---|\n| 1 | 2 |\n\n~~gone~~\n\n- [x] done\n"

    enabled = Converter().convert_body(source)
    disabled = Converter(
        Config(extensions=ExtensionsConfig(table=False, strikethrough=False, task_list=False))
    ).convert_body(source)

    assert "<table>" in enabled
    assert "<del>gone</del>" in enabled
    assert 'type="checkbox"' in enabled
    assert "<table>" not in disabled
    assert "<del>" not in disabled
    assert 'type="checkbox"' not in disabled


def test_hard_wraps_insert_line_breaks() -> None:
    soft = Converter().convert_body("one\ntwo")
    hard = Converter(Config(html=HTMLConfig(hard_wraps=True))).convert_body("one\ntwo")

    assert "<br" not in soft
    assert "<br" in hard


def test_client_mode_loads_mermaid_only_when_diagrams_exist() -> None:
    converter = Converter(Config(extensions=ExtensionsConfig(mermaid_render="client")))

    with_diagram = converter.convert(DIAGRAM)
    without_diagram = converter.convert("No diagrams here.")

    assert '<div class="mermaid">graph LR\n  A-->B\n</div>' in with_diagram
    assert "mermaid.esm.min.mjs" in with_diagram
    assert "mermaid.esm.min.mjs" not in without_diagram


def test_server_mode_inlines_svg_without_loader() -> None:
    session = FakeSession()
    converter = Converter(Config(), session=session)  # type: ignore[arg-type]

    html = converter.convert(DIAGRAM)

    assert session.sources == ["graph LR\n  A-->B\n"]
    assert '<div class="mermaid"><svg class="rendered"></svg></div>' in html
    assert "mermaid.esm.min.mjs" not in html


def test_disabled_mermaid_keeps_code_block() -> None:
    html = Converter(Config(extensions=ExtensionsConfig(mermaid=False))).convert_body(DIAGRAM)

    assert '<pre><code class="language-mermaid">graph LR\n  A--&gt;B\n</code></pre>' in html


def test_convert_file_reads_utf8(tmp_path: Path) -> None:
    source = tmp_path / "doc.md"
    source.write_text("Café au lait\n", encoding="utf-8")

    html = Converter().convert_file(source)

    assert "Café" in html


def test_convert_file_missing_input(tmp_path: Path) -> None:
    with pytest.raises(ConversionError, match="Unable to read input"):
        Converter().convert_file(tmp_path / "missing.md")


def test_session_receives_raw_diagram_source_with_unsafe_html() -> None:
    source = "flowchart TD\n\tA-->B\n\n<div>note</div>\n  \n"
    session = FakeSession()
    converter = Converter(Config(html=HTMLConfig(unsafe=True)), session=session)  # type: ignore[arg-type]

    converter.convert(f"Intro\n\n```mermaid\n{source}```\n\n<div>kept</div>\n")

    assert session.sources == [source]


def test_math_loads_katex_only_when_present() -> None:
    converter = Converter(Config(extensions=ExtensionsConfig(mermaid=False)))

    with_math = converter.convert("Euler: $e^{i\\pi} + 1 = 0$\n")
    without_math = converter.convert("Costs 5 dollars.\n")

    assert '<span class="arithmatex">\\(e^{i\\pi} + 1 = 0\\)</span>' in with_math
    assert "katex.min.css" in with_math
    assert "renderMathInElement" in with_math
    assert "katex" not in without_math


def test_disabled_katex_leaves_dollars_alone() -> None:
    config = Config(extensions=ExtensionsConfig(katex=False))

    html = Converter(config).convert("Euler: $e^{i\\pi}$\n")

    assert 'class="arithmatex"' not in html
    assert "$e^{i\\pi}$" in html
    assert "katex.min.js" not in html
