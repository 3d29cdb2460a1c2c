"""Headless Chromium launch helpers shared by the render session and PDF export."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import os
from typing import Any


logger = logging.getLogger(__name__)

# Chromium switches for the long-lived Mermaid render session.
SESSION_FLAGS: tuple[str, ...] = (
    "--disable-gpu",
    "--no-first-run",
    "--no-default-browser-check",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--no-zygote",
    "--disable-extensions",
    "--disable-dev-shm-usage",
)

# One-shot PDF export runs without the shared-memory workaround.
EXPORT_FLAGS: tuple[str, ...] = tuple(
    flag for flag in SESSION_FLAGS if flag != "--disable-dev-shm-usage"
)


@dataclass(slots=True)
class BrowserHandles:
    """Playwright driver and Chromium instance owned by one caller."""

    driver: Any
    browser: Any


def _quiet_node() -> None:
    # Silence Node.js deprecation warnings emitted by the Playwright driver.
    existing = os.environ.get("NODE_OPTIONS", "")
    if "--no-deprecation" not in existing:
        os.environ["NODE_OPTIONS"] = (existing + " --no-deprecation").strip()


def launch_chromium(
    flags: Sequence[str],
    *,
    executable_path: str | None = None,
) -> BrowserHandles:
    """Start a Playwright driver and a headless Chromium with ``flags``.

    The returned handles are bound to the calling thread. When the browser
    fails to launch, the driver is stopped before the error propagates.
    """
    from playwright.sync_api import sync_playwright

    _quiet_node()
    driver = sync_playwright().start()
    launch_kwargs: dict[str, Any] = {"headless": True, "args": list(flags)}
    if executable_path:
        launch_kwargs["executable_path"] = executable_path
    try:
        browser = driver.chromium.launch(**launch_kwargs)
    except BaseException:
        _stop_driver(driver)
        raise
    logger.debug("Launched headless Chromium (%s)", executable_path or "bundled")
    return BrowserHandles(driver=driver, browser=browser)


def _stop_driver(driver: Any) -> None:
    try:
        driver.stop()
    except Exception as exc:
        logger.warning("Failed to stop Playwright driver: %s", exc)


def shutdown_chromium(handles: BrowserHandles | None) -> None:
    """Close the browser and stop the driver, logging cleanup failures."""
    if handles is None:
        return
    if handles.browser is not None:
        try:
            handles.browser.close()
        except Exception as exc:
            logger.warning("Failed to close headless browser: %s", exc)
    if handles.driver is not None:
        _stop_driver(handles.driver)


__all__ = [
    "EXPORT_FLAGS",
    "SESSION_FLAGS",
    "BrowserHandles",
    "launch_chromium",
    "shutdown_chromium",
]
