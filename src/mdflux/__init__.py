"""Primary public API for mdflux."""

from __future__ import annotations

from mdflux.converter import Converter
from mdflux.core.config import Config, load_config
from mdflux.core.exceptions import (
    ConversionError,
    DiagramRenderError,
    ExportValidationError,
    MdfluxError,
    PdfExportError,
    SessionInitializationError,
)
from mdflux.d2 import D2Extension, D2Renderer
from mdflux.markdown import CJKExtension, DocumentPipeline, Extension, NodeKind
from mdflux.mermaid import MermaidExtension, MermaidSession, RenderResult
from mdflux.pdf import PageSize, PDFExportOptions, export_pdf, page_geometry
from mdflux.version import get_version


__version__ = get_version()

__all__ = [
    "CJKExtension",
    "Config",
    "ConversionError",
    "Converter",
    "D2Extension",
    "D2Renderer",
    "DiagramRenderError",
    "DocumentPipeline",
    "ExportValidationError",
    "Extension",
    "MdfluxError",
    "MermaidExtension",
    "MermaidSession",
    "NodeKind",
    "PDFExportOptions",
    "PageSize",
    "PdfExportError",
    "RenderResult",
    "SessionInitializationError",
    "__version__",
    "export_pdf",
    "get_version",
    "load_config",
    "page_geometry",
]
