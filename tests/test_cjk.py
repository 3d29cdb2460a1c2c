from __future__ import annotations

import xml.etree.ElementTree as ElementTree

import pytest

from mdflux.converter import Converter
from mdflux.core.config import Config, ExtensionsConfig, HTMLConfig
from mdflux.markdown import CJKExtension, DocumentPipeline, EastAsianLineBreaks
from mdflux.markdown.cjk import is_east_asian_wide


@pytest.mark.parametrize(
    ("char", "simple", "css3draft"),
    [
        ("日", True, True),
        ("Ａ", True, True),
        ("ｶ", False, True),
        ("한", True, False),
        ("a", False, False),
    ],
)
def test_east_asian_width_classes(char: str, simple: bool, css3draft: bool) -> None:
    assert is_east_asian_wide(char, "simple") is simple
    assert is_east_asian_wide(char, "css3draft") is css3draft


def test_soft_breaks_between_wide_characters_are_dropped() -> None:
    transformer = EastAsianLineBreaks("simple")

    assert transformer.join("日本語の\n文章です") == "日本語の文章です"
    assert transformer.join("日本語\nEnglish") == "日本語\nEnglish"
    assert transformer.join("one\ntwo") == "one\ntwo"


def test_code_is_left_alone() -> None:
    root = ElementTree.Element("div")
    paragraph = ElementTree.SubElement(root, "p")
    paragraph.text = "前\n後"
    pre = ElementTree.SubElement(root, "pre")
    pre.text = "前\n後"
    pre.tail = "外\n側"

    EastAsianLineBreaks()(root)

    assert paragraph.text == "前後"
    assert pre.text == "前\n後"
    assert pre.tail == "外側"


def test_pipeline_extension_joins_lines_and_drops_escaped_spaces() -> None:
    pipeline = DocumentPipeline().use(CJKExtension("simple"))

    html = pipeline.convert("日本語の\n文章です。\n\n**強調**\\ です")

    assert "<p>日本語の文章です。</p>" in html
    assert "<p><strong>強調</strong>です</p>" in html


def test_escaped_space_untouched_without_cjk() -> None:
    html = DocumentPipeline().convert("a\\ b")

    assert "a\\ b" in html


def test_converter_enables_line_breaks_from_configuration() -> None:
    source = "日本語の\n文章です"

    plain = Converter().convert_body(source)
    cjk = Converter(Config(extensions=ExtensionsConfig(cjk=True))).convert_body(source)
    explicit = Converter(
        Config(html=HTMLConfig(east_asian_line_breaks="css3draft"))
    ).convert_body(source)

    assert "日本語の\n文章です" in plain
    assert "日本語の文章です" in cjk
    assert "日本語の文章です" in explicit
