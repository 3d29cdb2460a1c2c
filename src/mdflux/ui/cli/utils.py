"""Input and output helpers for the CLI."""

from __future__ import annotations

from pathlib import Path
import sys


def is_stdio(value: str | None) -> bool:
    """Return True when ``value`` designates standard input or output."""
    return value is None or value in {"", "-"}


def read_input(source: str | None) -> str:
    """Read Markdown from ``source`` or from standard input."""
    if is_stdio(source):
        return sys.stdin.read()
    path = Path(source)  # type: ignore[arg-type]
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"Failed to read input '{path}': {exc}") from exc


def write_output_file(target: Path, content: str) -> None:
    """Persist HTML content to disk, creating parent directories as needed."""
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise OSError(f"Failed to write HTML output to '{target}': {exc}") from exc


__all__ = ["is_stdio", "read_input", "write_output_file"]
