"""Configuration models and loading for mdflux.

Config

`input` (`str | None`)
: Markdown file to convert. ``None`` or ``-`` reads standard input.

`output` (`str | None`)
: Destination file. ``None`` or ``-`` writes HTML to standard output; PDF
  output always requires a file path.

`format` (`"html" | "pdf"`)
: Output format.

`theme` (`"auto" | "light" | "dark"`)
: Colour theme forwarded to the HTML template.

`title` (`str`)
: Document title written to the HTML ``<title>``.

`log_level` (`str`) and `log_file` (`str | None`)
: Logging verbosity and optional log destination.

`cache_dir` (`str | None`)
: Cache root for the downloaded Mermaid library and rendered D2 diagrams.
  Defaults to ``$XDG_CACHE_HOME/mdflux`` or ``~/.cache/mdflux``.

HTMLConfig

`east_asian_line_breaks` (`"none" | "simple" | "css3draft"`)
: Drop soft line breaks between East Asian wide characters. ``simple``
  considers wide and fullwidth characters, ``css3draft`` also halfwidth
  ones while keeping breaks next to Hangul.

PDFConfig

`page_size` (`str`)
: ``A4``, ``Letter`` or ``Legal``. Unknown values print as A4.

`landscape` (`bool`), `scale` (`float`)
: Orientation and print scale. A scale of zero or below falls back to 0.8.

`margin_top`, `margin_bottom`, `margin_left`, `margin_right` (`float`)
: Page margins in inches.

`chrome.mode` (`"auto" | "manual"`) and `chrome.path` (`str | None`)
: When the mode is ``manual`` the Chromium executable at ``path`` is used
  instead of the browser bundled with Playwright.

ExtensionsConfig

`cjk` (`bool`)
: East Asian text support: escaped spaces (``\\ ``) render as nothing and
  soft line breaks default to the ``simple`` East Asian rule.

`katex` (`bool`)
: Recognise ``$...$`` and ``$$...$$`` math and typeset it with KaTeX in the
  rendered page.

`d2.enabled`, `d2.layout` (`"dagre" | "elk"`), `d2.theme_id` (`int`), `d2.executable`
: Render ```` ```d2 ```` fences to inline SVG with the ``d2`` executable.

`mermaid_render` (`"client" | "server"`)
: ``server`` renders diagrams to inline SVG with headless Chromium,
  ``client`` leaves them to the Mermaid script loaded by the page.

`mermaid_js` (`Path | None`)
: Local Mermaid build embedded in the render page instead of the cached
  download.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
import os
from pathlib import Path
import tomllib
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from mdflux.core.exceptions import ConfigError
from mdflux.pdf import PDFExportOptions


ENV_PREFIX = "MDFLUX"
CONFIG_FILENAME = "mdflux.cfg.toml"


def default_config_paths() -> list[Path]:
    """Return the locations searched for a configuration file, in order."""
    return [
        Path.cwd() / CONFIG_FILENAME,
        Path.home() / ".config" / "mdflux" / CONFIG_FILENAME,
        Path("/etc/mdflux") / CONFIG_FILENAME,
    ]


class HTMLConfig(BaseModel):
    """HTML rendering switches."""

    model_config = ConfigDict(extra="forbid")

    unsafe: bool = False
    hard_wraps: bool = False
    xhtml: bool = False
    east_asian_line_breaks: Literal["none", "simple", "css3draft"] = "none"


class ChromeConfig(BaseModel):
    """Browser executable selection."""

    model_config = ConfigDict(extra="forbid")

    mode: Literal["auto", "manual"] = "auto"
    path: str | None = None

    def executable_path(self) -> str | None:
        if self.mode == "manual" and self.path:
            return self.path
        return None


class PDFConfig(BaseModel):
    """Page geometry used when printing to PDF."""

    model_config = ConfigDict(extra="forbid")

    page_size: str = "A4"
    landscape: bool = False
    scale: float = 0.8
    margin_top: float = 0.5
    margin_bottom: float = 0.5
    margin_left: float = 0.5
    margin_right: float = 0.5
    chrome: ChromeConfig = ChromeConfig()

    def to_options(self) -> PDFExportOptions:
        """Return the immutable export options for a single PDF export."""
        return PDFExportOptions(
            page_size=self.page_size,
            landscape=self.landscape,
            scale=self.scale,
            margin_top=self.margin_top,
            margin_bottom=self.margin_bottom,
            margin_left=self.margin_left,
            margin_right=self.margin_right,
            executable_path=self.chrome.executable_path(),
        )


class D2Config(BaseModel):
    """D2 diagram rendering through the ``d2`` command-line tool."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    layout: Literal["dagre", "elk"] = "dagre"
    theme_id: int = 0
    executable: str | None = None


class ExtensionsConfig(BaseModel):
    """Markdown extensions toggled on the conversion pipeline."""

    model_config = ConfigDict(extra="forbid")

    table: bool = True
    strikethrough: bool = True
    linkify: bool = True
    task_list: bool = True
    definition_list: bool = False
    footnote: bool = False
    typographer: bool = True
    cjk: bool = False
    katex: bool = True
    d2: D2Config = D2Config()
    mermaid: bool = True
    mermaid_render: Literal["client", "server"] = "server"
    mermaid_js: Path | None = None


class Config(BaseModel):
    """Top-level mdflux configuration."""

    model_config = ConfigDict(extra="forbid")

    input: str | None = None
    output: str | None = None
    format: Literal["html", "pdf"] = "html"
    theme: Literal["auto", "light", "dark"] = "auto"
    title: str = "Document"
    log_level: str = "info"
    log_file: str | None = None
    cache_dir: str | None = None
    html: HTMLConfig = HTMLConfig()
    pdf: PDFConfig = PDFConfig()
    extensions: ExtensionsConfig = ExtensionsConfig()


def _iter_keys(model: type[BaseModel], prefix: tuple[str, ...] = ()) -> Iterator[tuple[str, ...]]:
    for name, field in model.model_fields.items():
        annotation = field.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            yield from _iter_keys(annotation, (*prefix, name))
        else:
            yield (*prefix, name)


def _set_nested(target: dict[str, Any], key: tuple[str, ...], value: Any) -> None:
    node = target
    for part in key[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[key[-1]] = value


def _deep_merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect ``MDFLUX_*`` variables into a nested configuration mapping."""
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for key in _iter_keys(Config):
        name = "_".join((ENV_PREFIX, *key)).upper()
        value = env.get(name)
        if value is None or value == "":
            continue
        _set_nested(overrides, key, value)
    return overrides


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a TOML configuration file."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file '{path}': {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in configuration file '{path}': {exc}") from exc


def _prune_none(values: Mapping[str, Any]) -> dict[str, Any]:
    pruned: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, Mapping):
            nested = _prune_none(value)
            if nested:
                pruned[key] = nested
        elif value is not None:
            pruned[key] = value
    return pruned


def load_config(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    search_paths: list[Path] | None = None,
) -> tuple[Config, Path | None]:
    """Load configuration from file, environment and explicit overrides.

    Precedence, lowest first: defaults, configuration file, ``MDFLUX_*``
    environment variables, ``overrides``. An explicit ``path`` must exist;
    the default search locations are optional. Returns the configuration and
    the file it was read from.
    """
    data: dict[str, Any] = {}
    used: Path | None = None

    if path is not None:
        used = Path(path).expanduser()
        if not used.is_file():
            raise ConfigError(f"Configuration file '{used}' does not exist.")
        data = read_config_file(used)
    else:
        for candidate in search_paths if search_paths is not None else default_config_paths():
            if candidate.is_file():
                used = candidate
                data = read_config_file(candidate)
                break

    data = _deep_merge(data, environment_overrides(environ))
    if overrides:
        data = _deep_merge(data, _prune_none(overrides))

    try:
        return Config.model_validate(data), used
    except ValidationError as exc:
        source = f" in '{used}'" if used else ""
        raise ConfigError(f"Invalid configuration{source}: {exc}") from exc


__all__ = [
    "CONFIG_FILENAME",
    "ChromeConfig",
    "Config",
    "D2Config",
    "ENV_PREFIX",
    "ExtensionsConfig",
    "HTMLConfig",
    "PDFConfig",
    "default_config_paths",
    "environment_overrides",
    "load_config",
    "read_config_file",
]
