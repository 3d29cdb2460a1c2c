"""CLI command implementations exposed via `mdflux.ui.cli`."""

from __future__ import annotations

from .convert import convert


__all__ = ["convert"]
