"""Expose fenced code blocks as document tree nodes.

Python-Markdown's ``fenced_code`` extension swaps fences for raw HTML
placeholders, which hides them from tree processors. This extension reuses
the same fence grammar in two stages:

* a preprocessor running ahead of whitespace normalisation and raw HTML
  extraction lifts every fence out of the source, keeping its content
  verbatim in a side table and leaving a placeholder line behind;
* a block processor turns each placeholder back into a
  :class:`FencedCodeBlock` element so that transformers can inspect the
  declared language and the raw content.
"""

from __future__ import annotations

import html
import re
import xml.etree.ElementTree as ElementTree

from markdown import Markdown
from markdown.blockparser import BlockParser
from markdown.blockprocessors import BlockProcessor
from markdown.extensions import Extension
from markdown.extensions.fenced_code import FencedBlockPreprocessor
from markdown.postprocessors import Postprocessor
from markdown.preprocessors import Preprocessor
from markdown.util import AtomicString


FENCED_BLOCK_RE = FencedBlockPreprocessor.FENCED_BLOCK_RE

# Private-use code points survive whitespace normalisation, unlike STX/ETX.
PLACEHOLDER_PREFIX = "\ue000mdflux-fence:"
PLACEHOLDER_SUFFIX = "\ue001"
PLACEHOLDER_RE = re.compile(
    re.escape(PLACEHOLDER_PREFIX) + r"(?P<index>\d+)" + re.escape(PLACEHOLDER_SUFFIX)
)

# Python-Markdown runs normalize_whitespace at 30 and html_block at 20.
PREPROCESSOR_PRIORITY = 35
BLOCK_PRIORITY = 75
# After raw HTML has been restored (30), for fences inside raw HTML blocks.
POSTPROCESSOR_PRIORITY = 25


class FencedCodeBlock(ElementTree.Element):
    """``<pre><code>`` element that remembers its fence language and raw content."""

    def __init__(self, language: str = "", code: str = "") -> None:
        super().__init__("pre")
        self.language = language
        self.code = code
        inner = ElementTree.SubElement(self, "code")
        if language:
            inner.set("class", f"language-{language}")
        inner.text = AtomicString(code)


class FenceStash:
    """Fence contents captured from the current document, keyed by placeholder index."""

    def __init__(self) -> None:
        self._blocks: list[tuple[str, str]] = []

    def store(self, language: str, code: str) -> str:
        self._blocks.append((language, code))
        return f"{PLACEHOLDER_PREFIX}{len(self._blocks) - 1}{PLACEHOLDER_SUFFIX}"

    def get(self, index: int) -> tuple[str, str] | None:
        if 0 <= index < len(self._blocks):
            return self._blocks[index]
        return None

    def reset(self) -> None:
        self._blocks.clear()

    def __len__(self) -> int:
        return len(self._blocks)


class FenceCapturePreprocessor(Preprocessor):
    """Replace fenced blocks with placeholder lines before any other preprocessing."""

    def __init__(self, md: Markdown, stash: FenceStash) -> None:
        super().__init__(md)
        self.stash = stash

    def run(self, lines: list[str]) -> list[str]:
        text = "\n".join(lines).replace("\r\n", "\n").replace("\r", "\n")
        position = 0
        while True:
            match = FENCED_BLOCK_RE.search(text, position)
            if match is None:
                break
            placeholder = self.stash.store(match.group("lang") or "", match.group("code"))
            head = text[: match.start()]
            tail = text[match.end() :]
            text = f"{head}\n\n{placeholder}\n\n{tail}"
            position = len(head) + len(placeholder) + 4
        return text.split("\n")


class FencedCodeProcessor(BlockProcessor):
    """Turn fence placeholders into :class:`FencedCodeBlock` nodes."""

    def __init__(self, parser: BlockParser, stash: FenceStash) -> None:
        super().__init__(parser)
        self.stash = stash

    def test(self, parent: ElementTree.Element, block: str) -> bool:
        return PLACEHOLDER_RE.search(block) is not None

    def run(self, parent: ElementTree.Element, blocks: list[str]) -> bool | None:
        block = blocks.pop(0)
        match = PLACEHOLDER_RE.search(block)
        if match is None:
            blocks.insert(0, block)
            return False

        after = block[match.end() :].lstrip("\n")
        if after:
            blocks.insert(0, after)

        before = block[: match.start()].rstrip("\n")
        if before.strip():
            self.parser.parseBlocks(parent, [before])

        entry = self.stash.get(int(match.group("index")))
        if entry is None:
            return None
        language, code = entry
        parent.append(FencedCodeBlock(language=language, code=code))
        return None


class FenceRestorePostprocessor(Postprocessor):
    """Put back fences that ended up inside raw HTML, as escaped code blocks."""

    def __init__(self, md: Markdown, stash: FenceStash) -> None:
        super().__init__(md)
        self.stash = stash

    def run(self, text: str) -> str:
        if not len(self.stash):
            return text
        return PLACEHOLDER_RE.sub(self._restore, text)

    def _restore(self, match: re.Match[str]) -> str:
        entry = self.stash.get(int(match.group("index")))
        if entry is None:
            return ""
        language, code = entry
        css = f' class="language-{html.escape(language)}"' if language else ""
        return f"<pre><code{css}>{html.escape(code, quote=False)}</code></pre>"


class FencedCodeNodesExtension(Extension):
    """Register the fence capture, block and restore stages."""

    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self.stash = FenceStash()

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        md.registerExtension(self)
        md.preprocessors.register(
            FenceCapturePreprocessor(md, self.stash), "mdflux_fence_capture", PREPROCESSOR_PRIORITY
        )
        md.parser.blockprocessors.register(
            FencedCodeProcessor(md.parser, self.stash), "mdflux_fenced_code", BLOCK_PRIORITY
        )
        md.postprocessors.register(
            FenceRestorePostprocessor(md, self.stash),
            "mdflux_fence_restore",
            POSTPROCESSOR_PRIORITY,
        )

    def reset(self) -> None:
        self.stash.reset()


def makeExtension(**kwargs: object) -> FencedCodeNodesExtension:  # pragma: no cover - entry point  # noqa: N802
    return FencedCodeNodesExtension(**kwargs)


__all__ = [
    "FENCED_BLOCK_RE",
    "FenceCapturePreprocessor",
    "FenceRestorePostprocessor",
    "FenceStash",
    "FencedCodeBlock",
    "FencedCodeNodesExtension",
    "FencedCodeProcessor",
    "makeExtension",
]
