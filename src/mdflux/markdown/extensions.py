"""Map extension toggles onto Python-Markdown and pymdown-extensions names."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from mdflux.core.config import ExtensionsConfig, HTMLConfig


# Toggle name on ExtensionsConfig -> Markdown extension providing it.
EXTENSION_TOGGLES: dict[str, str] = {
    "table": "tables",
    "strikethrough": "pymdownx.tilde",
    "linkify": "pymdownx.magiclink",
    "task_list": "pymdownx.tasklist",
    "definition_list": "def_list",
    "footnote": "footnotes",
    "typographer": "smarty",
    "katex": "pymdownx.arithmatex",
}

DEFAULT_EXTENSION_CONFIGS: dict[str, dict[str, Any]] = {
    "pymdownx.tilde": {
        "subscript": False,
    },
    "pymdownx.tasklist": {
        "custom_checkbox": False,
    },
    "smarty": {
        "smart_angled_quotes": False,
    },
    # Generic output keeps the TeX delimiters for KaTeX auto-render.
    "pymdownx.arithmatex": {
        "generic": True,
    },
}


def deduplicate_markdown_extensions(values: Iterable[str]) -> list[str]:
    """Remove duplicate extensions while preserving order and case."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def resolve_markdown_extensions(
    extensions: ExtensionsConfig,
    html: HTMLConfig | None = None,
) -> tuple[list[str], dict[str, dict[str, Any]]]:
    """Return the active extension names and their configuration mappings."""
    html = html or HTMLConfig()
    names = [
        extension
        for toggle, extension in EXTENSION_TOGGLES.items()
        if getattr(extensions, toggle)
    ]
    if html.hard_wraps:
        names.append("nl2br")
    if html.unsafe:
        names.append("md_in_html")

    active = deduplicate_markdown_extensions(names)
    configs = {
        name: dict(DEFAULT_EXTENSION_CONFIGS[name])
        for name in active
        if name in DEFAULT_EXTENSION_CONFIGS
    }
    return active, configs


__all__ = [
    "DEFAULT_EXTENSION_CONFIGS",
    "EXTENSION_TOGGLES",
    "deduplicate_markdown_extensions",
    "resolve_markdown_extensions",
]
