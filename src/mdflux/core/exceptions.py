"""Custom exception hierarchy for the Markdown to HTML/PDF pipeline."""

from __future__ import annotations


class MdfluxError(RuntimeError):
    """Base exception for mdflux failures."""


class ConfigError(MdfluxError):
    """Raised when a configuration file or value cannot be used."""


class ConversionError(MdfluxError):
    """Raised when Markdown cannot be converted into an HTML document."""


class ExtractionError(ConversionError):
    """Raised when the document tree has an unexpected shape during extraction."""


class TemplateError(MdfluxError):
    """Raised when a packaged template is missing or fails to render."""


class LibraryNotFoundError(MdfluxError):
    """Raised when the Mermaid JavaScript library cannot be located."""


class BrowserError(MdfluxError):
    """Base exception for headless browser failures."""


class SessionInitializationError(BrowserError):
    """Raised when the Mermaid render session fails to start."""


class SessionClosedError(BrowserError):
    """Raised when a render is requested on a released session."""


class DiagramRenderError(BrowserError):
    """Raised when a diagram cannot be rendered to SVG."""


class PdfExportError(MdfluxError):
    """Raised when printing an HTML document to PDF fails."""


class ExportValidationError(PdfExportError, ValueError):
    """Raised when PDF export arguments are rejected before launching a browser."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


__all__ = [
    "BrowserError",
    "ConfigError",
    "ConversionError",
    "DiagramRenderError",
    "ExportValidationError",
    "ExtractionError",
    "LibraryNotFoundError",
    "MdfluxError",
    "PdfExportError",
    "SessionClosedError",
    "SessionInitializationError",
    "TemplateError",
    "exception_messages",
]
