"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
OUTPUT_PANEL = "Output"
RENDERING_PANEL = "Rendering"
PDF_PANEL = "PDF"
DIAGNOSTICS_PANEL = "Diagnostics"

InputArgument = Annotated[
    str | None,
    typer.Argument(
        metavar="INPUT",
        help="Markdown file to convert. Use '-' or omit to read standard input.",
        show_default=False,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Configuration file (TOML). Defaults to the first mdflux.cfg.toml found.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputOption = Annotated[
    str | None,
    typer.Option(
        "--output",
        "-o",
        help="Output file. Use '-' or omit to write HTML to standard output.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

FormatOption = Annotated[
    str | None,
    typer.Option(
        "--format",
        "-f",
        help="Output format: html or pdf.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

ThemeOption = Annotated[
    str | None,
    typer.Option(
        "--theme",
        "-t",
        help="Colour theme: auto, light or dark.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

MermaidRenderOption = Annotated[
    str | None,
    typer.Option(
        "--mermaid-render",
        help="Render Mermaid diagrams in the reader's browser (client) or to inline SVG (server).",
        rich_help_panel=RENDERING_PANEL,
    ),
]

PageSizeOption = Annotated[
    str | None,
    typer.Option(
        "--page-size",
        help="Paper size for PDF output: A4, Letter or Legal.",
        rich_help_panel=PDF_PANEL,
    ),
]

LandscapeOption = Annotated[
    bool | None,
    typer.Option(
        "--landscape/--portrait",
        help="Page orientation for PDF output.",
        show_default=False,
        rich_help_panel=PDF_PANEL,
    ),
]

ScaleOption = Annotated[
    float | None,
    typer.Option(
        "--scale",
        help="Print scale for PDF output (values <= 0 fall back to 0.8).",
        rich_help_panel=PDF_PANEL,
    ),
]

ChromePathOption = Annotated[
    str | None,
    typer.Option(
        "--chrome-path",
        help="Chromium executable to use instead of the browser bundled with Playwright.",
        rich_help_panel=PDF_PANEL,
    ),
]

LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        "-l",
        help="Log level: debug, info, warn or error.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

LogFileOption = Annotated[
    str | None,
    typer.Option(
        "--log-file",
        help="Write logs to this file instead of standard error.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when errors occur.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

ClearCacheOption = Annotated[
    bool,
    typer.Option(
        "--clear-cache",
        help="Remove the cached Mermaid library and rendered D2 diagrams, then exit.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]
