"""Implementation of the `mdflux` conversion command."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
import os
from pathlib import Path
import sys
import tempfile
from typing import Annotated, Any

import typer

from mdflux.converter import Converter
from mdflux.core.cache import configure_cache, get_cache_dir
from mdflux.core.config import Config, load_config
from mdflux.core.exceptions import ConfigError, MdfluxError
from mdflux.core.logging import setup_logging
from mdflux.mermaid.session import MermaidSession
from mdflux.pdf import export_pdf
from mdflux.version import get_version

from .._options import (
    ChromePathOption,
    ClearCacheOption,
    ConfigOption,
    DebugOption,
    FormatOption,
    InputArgument,
    LandscapeOption,
    LogFileOption,
    LogLevelOption,
    MermaidRenderOption,
    OutputOption,
    PageSizeOption,
    ScaleOption,
    ThemeOption,
)
from ..state import debug_enabled, emit_error, emit_warning, set_cli_state
from ..utils import is_stdio, read_input, write_output_file


logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mdflux {get_version()}")
        raise typer.Exit()


def build_overrides(
    *,
    input_path: str | None = None,
    output: str | None = None,
    output_format: str | None = None,
    theme: str | None = None,
    log_level: str | None = None,
    log_file: str | None = None,
    page_size: str | None = None,
    landscape: bool | None = None,
    scale: float | None = None,
    chrome_path: str | None = None,
    mermaid_render: str | None = None,
) -> dict[str, Any]:
    """Translate command-line flags into a nested configuration mapping."""
    return {
        "input": input_path,
        "output": output,
        "format": output_format,
        "theme": theme,
        "log_level": log_level,
        "log_file": log_file,
        "pdf": {
            "page_size": page_size,
            "landscape": landscape,
            "scale": scale,
            "chrome": {
                "mode": "manual" if chrome_path else None,
                "path": chrome_path,
            },
        },
        "extensions": {"mermaid_render": mermaid_render},
    }


@contextmanager
def mermaid_session(config: Config) -> Iterator[MermaidSession | None]:
    """Yield the render session for this run and release it on exit."""
    extensions = config.extensions
    if not extensions.mermaid or extensions.mermaid_render != "server":
        yield None
        return
    with MermaidSession(
        executable_path=config.pdf.chrome.executable_path(),
        mermaid_js=extensions.mermaid_js,
    ) as session:
        yield session


def run_conversion(config: Config) -> None:
    """Convert the configured input and write HTML or PDF output."""
    if config.format == "pdf" and is_stdio(config.output):
        raise typer.BadParameter("PDF output requires a file path, cannot write to stdout")

    extensions = config.extensions
    if config.format == "pdf" and extensions.mermaid and extensions.mermaid_render == "client":
        emit_warning(
            "Client-side Mermaid rendering may not finish before the page is printed; "
            "use --mermaid-render server for PDF output."
        )

    source = read_input(config.input)
    with mermaid_session(config) as session:
        html = Converter(config, session=session).convert(source)

    if config.format == "html":
        if is_stdio(config.output):
            sys.stdout.write(html)
            sys.stdout.flush()
            return
        target = Path(config.output)  # type: ignore[arg-type]
        write_output_file(target, html)
        logger.info("HTML written to %s", target)
        return

    handle, temp_name = tempfile.mkstemp(prefix="mdflux-", suffix=".html")
    temp_path = Path(temp_name)
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(html)
        export_pdf(temp_path, config.output, config.pdf.to_options())
    finally:
        try:
            temp_path.unlink()
        except OSError as exc:
            logger.error("Failed to remove temporary HTML file %s: %s", temp_path, exc)


def convert(
    source: InputArgument = None,
    output: OutputOption = None,
    output_format: FormatOption = None,
    config_path: ConfigOption = None,
    theme: ThemeOption = None,
    log_level: LogLevelOption = None,
    log_file: LogFileOption = None,
    page_size: PageSizeOption = None,
    landscape: LandscapeOption = None,
    scale: ScaleOption = None,
    mermaid_render: MermaidRenderOption = None,
    chrome_path: ChromePathOption = None,
    clear_cache: ClearCacheOption = False,
    debug: DebugOption = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the mdflux version and exit.",
        ),
    ] = False,
) -> None:
    """Convert Markdown into styled HTML or PDF, rendering Mermaid diagrams."""
    _ = version
    set_cli_state(debug=debug)

    overrides = build_overrides(
        input_path=source,
        output=output,
        output_format=output_format,
        theme=theme,
        log_level=log_level,
        log_file=log_file,
        page_size=page_size,
        landscape=landscape,
        scale=scale,
        chrome_path=chrome_path,
        mermaid_render=mermaid_render,
    )
    try:
        config, config_file = load_config(config_path, overrides=overrides)
    except ConfigError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    setup_logging(config.log_level, config.log_file)
    if config_file is not None:
        logger.debug("Loaded configuration from %s", config_file)
    if config.cache_dir:
        configure_cache(config.cache_dir)

    if clear_cache:
        try:
            removed = get_cache_dir().clear()
        except OSError as exc:
            emit_error(f"Failed to clear cache: {exc}", exception=exc)
            raise typer.Exit(code=1) from exc
        for path in removed:
            typer.echo(f"Removed {path}")
        raise typer.Exit()

    try:
        run_conversion(config)
    except typer.BadParameter as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc
    except (MdfluxError, OSError) as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["build_overrides", "convert", "mermaid_session", "run_conversion"]
