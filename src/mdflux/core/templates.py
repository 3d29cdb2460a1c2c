"""Access to the Jinja templates packaged under ``mdflux/templates``."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateError as JinjaTemplateError, TemplateNotFound

from mdflux.core.exceptions import TemplateError


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Return the shared template environment."""
    return Environment(
        loader=PackageLoader("mdflux", "templates"),
        autoescape=False,
        keep_trailing_newline=True,
    )


def load_resource(name: str) -> str:
    """Return the raw text of a packaged template resource."""
    environment = get_environment()
    try:
        source, _filename, _uptodate = environment.loader.get_source(environment, name)  # type: ignore[union-attr]
    except TemplateNotFound as exc:
        raise TemplateError(f"Packaged resource '{name}' is missing.") from exc
    return source


def render_template(template_name: str, **context: Any) -> str:
    """Render a packaged template with ``context``."""
    try:
        template = get_environment().get_template(template_name)
    except TemplateNotFound as exc:
        raise TemplateError(f"Packaged template '{template_name}' is missing.") from exc
    try:
        return template.render(context)
    except JinjaTemplateError as exc:
        raise TemplateError(f"Failed to render template '{template_name}': {exc}") from exc


__all__ = ["get_environment", "load_resource", "render_template"]
