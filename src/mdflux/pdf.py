"""Print finished HTML documents to PDF through a one-shot headless Chromium."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path

from mdflux.browser import EXPORT_FLAGS, BrowserHandles, launch_chromium, shutdown_chromium
from mdflux.core.exceptions import ExportValidationError, PdfExportError


logger = logging.getLogger(__name__)

DEFAULT_SCALE = 0.8
DEFAULT_MARGIN = 0.5


class PageSize(str, Enum):
    """Supported paper sizes."""

    A4 = "A4"
    LETTER = "Letter"
    LEGAL = "Legal"

    @classmethod
    def parse(cls, value: PageSize | str | None) -> PageSize:
        """Return the page size matching ``value``, falling back to A4."""
        if isinstance(value, cls):
            return value
        if value:
            for member in cls:
                if member.value == value:
                    return member
        return cls.A4


# Paper dimensions in inches, portrait orientation.
_PAPER_INCHES: dict[PageSize, tuple[float, float]] = {
    PageSize.A4: (8.27, 11.69),
    PageSize.LETTER: (8.5, 11.0),
    PageSize.LEGAL: (8.5, 14.0),
}


@dataclass(frozen=True, slots=True)
class PDFExportOptions:
    """Page geometry and browser selection for a single export."""

    page_size: PageSize | str = PageSize.A4
    landscape: bool = False
    scale: float = DEFAULT_SCALE
    margin_top: float = DEFAULT_MARGIN
    margin_bottom: float = DEFAULT_MARGIN
    margin_left: float = DEFAULT_MARGIN
    margin_right: float = DEFAULT_MARGIN
    executable_path: str | None = None


@dataclass(frozen=True, slots=True)
class PageGeometry:
    """Resolved print parameters, all lengths in inches."""

    width: float
    height: float
    scale: float
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float

    def margins(self) -> dict[str, str]:
        return {
            "top": f"{self.margin_top}in",
            "bottom": f"{self.margin_bottom}in",
            "left": f"{self.margin_left}in",
            "right": f"{self.margin_right}in",
        }


def page_geometry(options: PDFExportOptions) -> PageGeometry:
    """Compute paper dimensions and the effective scale for ``options``."""
    width, height = _PAPER_INCHES[PageSize.parse(options.page_size)]
    if options.landscape:
        width, height = height, width
    scale = options.scale if options.scale > 0 else DEFAULT_SCALE
    return PageGeometry(
        width=width,
        height=height,
        scale=scale,
        margin_top=options.margin_top,
        margin_bottom=options.margin_bottom,
        margin_left=options.margin_left,
        margin_right=options.margin_right,
    )


def _validate_output(output_path: str | Path | None) -> Path:
    if output_path is None or str(output_path) in {"", "-"}:
        raise ExportValidationError("PDF output requires a file path, cannot write to stdout")
    return Path(output_path)


def export_pdf(
    html_path: str | Path,
    output_path: str | Path | None,
    options: PDFExportOptions | None = None,
) -> Path:
    """Print ``html_path`` to ``output_path`` and return the written path.

    A fresh Playwright driver and Chromium instance are started for the call
    and torn down before it returns, whether the export succeeded or not.
    """
    target = _validate_output(output_path)
    options = options or PDFExportOptions()
    geometry = page_geometry(options)
    source = Path(html_path).resolve()

    from playwright.sync_api import Error as PlaywrightError

    handles: BrowserHandles | None = None
    try:
        handles = launch_chromium(EXPORT_FLAGS, executable_path=options.executable_path)
        page = handles.browser.new_page()
        page.goto(source.as_uri(), wait_until="load")
        payload = page.pdf(
            print_background=True,
            scale=geometry.scale,
            width=f"{geometry.width}in",
            height=f"{geometry.height}in",
            margin=geometry.margins(),
        )
        target.write_bytes(payload)
    except PlaywrightError as exc:
        raise PdfExportError(f"Failed to print '{source}' to PDF: {exc}") from exc
    except OSError as exc:
        raise PdfExportError(f"Failed to write PDF to '{target}': {exc}") from exc
    finally:
        shutdown_chromium(handles)

    logger.info("PDF written to %s", target)
    return target


__all__ = [
    "DEFAULT_MARGIN",
    "DEFAULT_SCALE",
    "PDFExportOptions",
    "PageGeometry",
    "PageSize",
    "export_pdf",
    "page_geometry",
]
