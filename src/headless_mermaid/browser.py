"""Headless Chromium session hosting the Mermaid bundle."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

from playwright.async_api import async_playwright

from .core.config import DEFAULT_BROWSER_ARGS, DEFAULT_MERMAID_SCRIPT, Viewport
from .core.exceptions import HeadlessMermaidError, RenderPhase


logger = logging.getLogger(__name__)

BLANK_PAGE = "data:text/html,<html></html>"

# Thrown values cross the page boundary as JSON. Error objects keep message
# and stack as non-enumerable own properties, hence the explicit replacer.
SERIALISE_ERROR_FUNCTION = """
function serialiseError(e) {
  if (e === null || e === undefined || typeof e !== 'object') {
    return JSON.stringify(e === undefined ? null : e);
  }
  try {
    return JSON.stringify(e, Object.getOwnPropertyNames(e));
  } catch (_) {
    return JSON.stringify(String(e));
  }
}
"""

INITIALIZE_SCRIPT = (
    """
(options) => {
"""
    + SERIALISE_ERROR_FUNCTION
    + """
  try {
    window.mermaid.initialize(options);
    return { success: true, error: null };
  } catch (e) {
    return { success: false, error: serialiseError(e) };
  }
}
"""
)


@dataclass(slots=True)
class MermaidSession:
    """Browser, page and driver handles for one rendering batch."""

    playwright: Any
    browser: Any
    page: Any
    closed: bool = False

    async def close(self) -> None:
        """Terminate the browser and stop the driver; later calls do nothing."""
        if self.closed:
            return
        self.closed = True
        await _release(self.playwright, self.browser)
        logger.debug("browser closed.")


async def _release(playwright: Any, browser: Any) -> None:
    if browser is not None:
        try:
            await browser.close()
        except Exception:
            logger.warning("failed to close headless browser", exc_info=True)
    if playwright is not None:
        try:
            await playwright.stop()
        except Exception:
            logger.warning("failed to stop playwright driver", exc_info=True)


async def _inject_mermaid(page: Any, script: str | Path) -> None:
    location = str(script)
    if location.startswith(("http://", "https://")):
        await page.add_script_tag(url=location)
    else:
        await page.add_script_tag(path=str(Path(location).expanduser()))


async def launch_session(
    viewport: Viewport,
    mermaid_options: Mapping[str, Any],
    *,
    script: str | Path = DEFAULT_MERMAID_SCRIPT,
    browser_args: Sequence[str] = DEFAULT_BROWSER_ARGS,
) -> MermaidSession:
    """Start a browser page with Mermaid loaded and initialised.

    Raises ``HeadlessMermaidError`` tagged with the browser phase when the
    browser cannot be prepared, or with the mermaid phase when
    ``mermaid.initialize`` throws inside the page. Anything started before the
    failure is released first.
    """
    playwright = None
    browser = None
    try:
        logger.debug("launching chromium with %s", list(browser_args))
        playwright = await async_playwright().start()
        browser = await playwright.chromium.launch(headless=True, args=list(browser_args))
        page = await browser.new_page()
        await page.set_viewport_size(viewport.as_playwright())
        await page.goto(BLANK_PAGE)
        await _inject_mermaid(page, script)
        outcome = await page.evaluate(INITIALIZE_SCRIPT, dict(mermaid_options))
    except Exception as exc:
        await _release(playwright, browser)
        raise HeadlessMermaidError.from_exception(RenderPhase.BROWSER, exc) from exc
    except BaseException:
        # Cancellation and interrupts still release the browser, then propagate.
        await _release(playwright, browser)
        raise

    session = MermaidSession(playwright=playwright, browser=browser, page=page)
    if not isinstance(outcome, Mapping) or not outcome.get("success"):
        await session.close()
        error = outcome.get("error") if isinstance(outcome, Mapping) else None
        raise HeadlessMermaidError.from_payload(RenderPhase.MERMAID, error)

    logger.info("browser created.")
    return session


async def close_session(session: MermaidSession | None) -> None:
    """Close ``session`` when one is present."""
    if session is not None:
        await session.close()


@asynccontextmanager
async def open_session(
    viewport: Viewport,
    mermaid_options: Mapping[str, Any],
    *,
    script: str | Path = DEFAULT_MERMAID_SCRIPT,
    browser_args: Sequence[str] = DEFAULT_BROWSER_ARGS,
) -> AsyncIterator[MermaidSession]:
    """Provide a ready session and close it on every exit path."""
    session = await launch_session(
        viewport, mermaid_options, script=script, browser_args=browser_args
    )
    try:
        yield session
    finally:
        await close_session(session)


__all__ = [
    "BLANK_PAGE",
    "INITIALIZE_SCRIPT",
    "MermaidSession",
    "close_session",
    "launch_session",
    "open_session",
]
