"""Reusable headless Chromium session rendering Mermaid diagrams to SVG.

The browser starts on the first render request and stays alive until the
session is closed. Playwright sync objects are bound to the thread that
created them, so every browser call runs on a single dedicated worker
thread owned by the session. The session lock serialises initialisation and
renders, which keeps at most one in-page evaluation in flight.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
import json
import logging
from pathlib import Path
import shutil
import tempfile
import threading
from typing import Any

from mdflux.browser import SESSION_FLAGS, BrowserHandles, launch_chromium, shutdown_chromium
from mdflux.core.exceptions import (
    DiagramRenderError,
    MdfluxError,
    SessionClosedError,
    SessionInitializationError,
)
from mdflux.core.templates import render_template
from mdflux.mermaid.library import load_mermaid_library


logger = logging.getLogger(__name__)

BOOTSTRAP_TEMPLATE = "mermaid.html.j2"
RENDER_TEMPLATE = "mermaid-render.js.j2"
READY_PREDICATE = "() => window.mdfluxReady === true"


class SessionState(Enum):
    """Lifecycle of a :class:`MermaidSession`."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Outcome of a single diagram render: SVG markup or an error message."""

    svg: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.svg is not None


def render_bootstrap_page(library_source: str) -> str:
    """Return the bootstrap HTML page embedding ``library_source``."""
    # An inline script element ends at the first "</script", wherever it appears.
    escaped = library_source.replace("</script", "<\\/script")
    return render_template(BOOTSTRAP_TEMPLATE, mermaid_js=escaped)


def render_script(source: str) -> str:
    """Return the evaluation script rendering ``source`` in the bootstrap page."""
    return render_template(RENDER_TEMPLATE, code=json.dumps(source))


def interpret_result(result: Any) -> str:
    """Return the SVG carried by an evaluation result or raise :class:`DiagramRenderError`."""
    if not isinstance(result, dict):
        raise DiagramRenderError(f"mermaid render returned no SVG (result: {result!r})")

    error = result.get("error")
    if isinstance(error, str) and error:
        raise DiagramRenderError(error)

    svg = result.get("svg")
    if svg is None:
        raise DiagramRenderError(f"mermaid render returned no SVG (result: {result!r})")
    if not isinstance(svg, str) or not svg:
        raise DiagramRenderError(f"mermaid render returned invalid SVG (result: {result!r})")
    return svg


class MermaidSession:
    """Lazily started Chromium page that renders Mermaid source to SVG."""

    def __init__(
        self,
        *,
        executable_path: str | None = None,
        mermaid_js: str | Path | None = None,
    ) -> None:
        self.executable_path = executable_path
        self.mermaid_js = mermaid_js
        self._lock = threading.Lock()
        self._state = SessionState.UNINITIALIZED
        self._executor: ThreadPoolExecutor | None = None
        self._handles: BrowserHandles | None = None
        self._page: Any = None
        self._temp_dir: Path | None = None
        self._html_path: Path | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    def __enter__(self) -> MermaidSession:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def render(self, source: str, *, timeout: float | None = None) -> str:
        """Render ``source`` and return the SVG markup.

        The browser is started on the first call. ``timeout`` bounds the wait
        for the in-page evaluation, in seconds.
        """
        with self._lock:
            if self._state is SessionState.CLOSED:
                raise SessionClosedError("mermaid session is closed")
            self._initialize()
            executor = self._executor
            assert executor is not None

            script = render_script(source)
            future = executor.submit(self._evaluate, script)
            try:
                result = future.result(timeout=timeout)
            except FutureTimeoutError as exc:
                raise DiagramRenderError(f"mermaid render timed out after {timeout}s") from exc
            except Exception as exc:
                raise DiagramRenderError(f"browser evaluation failed: {exc}") from exc
            return interpret_result(result)

    def try_render(self, source: str, *, timeout: float | None = None) -> RenderResult:
        """Render ``source`` and report failures in the result instead of raising."""
        try:
            return RenderResult(svg=self.render(source, timeout=timeout))
        except MdfluxError as exc:
            return RenderResult(error=str(exc))

    def close(self) -> None:
        """Release the browser and temporary files. Safe to call repeatedly.

        Closing a session that never rendered marks it closed without launching
        a browser; later renders raise :class:`SessionClosedError`.
        """
        with self._lock:
            if self._state is SessionState.CLOSED:
                return
            self._state = SessionState.CLOSED
            self._teardown()

    def _initialize(self) -> None:
        if self._state is SessionState.READY:
            return
        self._state = SessionState.INITIALIZING
        try:
            self._temp_dir = Path(tempfile.mkdtemp(prefix="mermaid-renderer-"))
            self._html_path = self._temp_dir / "mermaid.html"
            library_source = load_mermaid_library(self.mermaid_js)
            self._html_path.write_text(render_bootstrap_page(library_source), encoding="utf-8")
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mdflux-mermaid")
            self._handles, self._page = self._executor.submit(self._launch, self._html_path).result()
        except Exception as exc:
            self._teardown()
            self._state = SessionState.UNINITIALIZED
            raise SessionInitializationError(f"failed to initialize browser: {exc}") from exc
        self._state = SessionState.READY
        logger.debug("Mermaid render session ready (%s)", self._html_path)

    def _launch(self, html_path: Path) -> tuple[BrowserHandles, Any]:
        handles = launch_chromium(SESSION_FLAGS, executable_path=self.executable_path)
        try:
            page = handles.browser.new_page()
            page.goto(html_path.resolve().as_uri(), wait_until="load")
            page.wait_for_function(READY_PREDICATE)
        except BaseException:
            shutdown_chromium(handles)
            raise
        return handles, page

    def _evaluate(self, script: str) -> Any:
        return self._page.evaluate(script)

    def _teardown(self) -> None:
        executor, self._executor = self._executor, None
        handles, self._handles = self._handles, None
        self._page = None
        if executor is not None:
            if handles is not None:
                try:
                    executor.submit(shutdown_chromium, handles).result()
                except Exception as exc:
                    logger.error("Failed to shut down mermaid browser: %s", exc)
            executor.shutdown(wait=True)

        temp_dir, self._temp_dir = self._temp_dir, None
        self._html_path = None
        if temp_dir is not None:
            try:
                shutil.rmtree(temp_dir)
            except OSError as exc:
                logger.error("Failed to remove temp directory %s: %s", temp_dir, exc)


__all__ = [
    "MermaidSession",
    "RenderResult",
    "SessionState",
    "interpret_result",
    "render_bootstrap_page",
    "render_script",
]
