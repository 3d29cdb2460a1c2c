"""East Asian text handling for the document pipeline.

Markdown joins soft-wrapped lines with a newline, which browsers render as a
space. Between Chinese or Japanese characters that space is wrong, so the
line-break transformer drops soft breaks whose neighbours are both East
Asian wide characters. The escaped-space pattern lets authors separate
emphasis markers from adjacent CJK text with ``\\ `` without leaving a
visible space.
"""

from __future__ import annotations

import re
from typing import Literal
import unicodedata
import xml.etree.ElementTree as ElementTree

from markdown.inlinepatterns import InlineProcessor
from markdown.util import AtomicString

from mdflux.markdown.pipeline import DocumentPipeline


LineBreakMode = Literal["none", "simple", "css3draft"]

LINE_BREAK_PRIORITY = 50
# Ahead of Python-Markdown's backslash escapes (180).
ESCAPED_SPACE_PRIORITY = 185

_SOFT_BREAK_RE = re.compile(r"(?<=(.))\n(?=(.))")
_VERBATIM_TAGS = frozenset({"pre", "code", "script", "style"})


def _is_hangul(char: str) -> bool:
    code = ord(char)
    return (
        0x1100 <= code <= 0x11FF
        or 0x3130 <= code <= 0x318F
        or 0xA960 <= code <= 0xA97F
        or 0xAC00 <= code <= 0xD7AF
        or 0xD7B0 <= code <= 0xD7FF
        or 0xFFA0 <= code <= 0xFFDC
    )


def is_east_asian_wide(char: str, mode: LineBreakMode = "simple") -> bool:
    """Return True when ``char`` counts as East Asian under ``mode``."""
    width = unicodedata.east_asian_width(char)
    if mode == "css3draft":
        return width in {"W", "F", "H"} and not _is_hangul(char)
    return width in {"W", "F"}


class EastAsianLineBreaks:
    """Transformer removing soft line breaks between East Asian characters."""

    def __init__(self, mode: LineBreakMode = "simple") -> None:
        self.mode = mode

    def __call__(self, root: ElementTree.Element) -> None:
        if self.mode == "none":
            return
        self._walk(root)

    def _walk(self, element: ElementTree.Element) -> None:
        if isinstance(element.tag, str) and element.tag in _VERBATIM_TAGS:
            return
        element.text = self.join(element.text)
        for child in element:
            self._walk(child)
            child.tail = self.join(child.tail)

    def join(self, text: str | None) -> str | None:
        if not text or "\n" not in text or isinstance(text, AtomicString):
            return text
        return _SOFT_BREAK_RE.sub(self._replace, text)

    def _replace(self, match: re.Match[str]) -> str:
        before, after = match.group(1), match.group(2)
        if is_east_asian_wide(before, self.mode) and is_east_asian_wide(after, self.mode):
            return ""
        return "\n"


class EscapedSpaceInlineProcessor(InlineProcessor):
    """Render a backslash-escaped space as nothing."""

    def handleMatch(self, m: re.Match[str], data: str) -> tuple[str, int, int]:  # type: ignore[override]  # noqa: N802
        return "", m.start(0), m.end(0)


class CJKExtension:
    """Pipeline extension bundling East Asian line breaks and escaped spaces."""

    def __init__(
        self, line_breaks: LineBreakMode = "simple", *, escaped_space: bool = True
    ) -> None:
        self.line_breaks = line_breaks
        self.escaped_space = escaped_space

    def extend(self, pipeline: DocumentPipeline) -> None:
        if self.line_breaks != "none":
            pipeline.register_transformer(
                EastAsianLineBreaks(self.line_breaks), LINE_BREAK_PRIORITY
            )
        if self.escaped_space:
            pipeline.md.inlinePatterns.register(
                EscapedSpaceInlineProcessor(r"\\ ", pipeline.md),
                "mdflux_escaped_space",
                ESCAPED_SPACE_PRIORITY,
            )


__all__ = [
    "CJKExtension",
    "EastAsianLineBreaks",
    "EscapedSpaceInlineProcessor",
    "LineBreakMode",
    "is_east_asian_wide",
]
