from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from html import escape
import json
from typing import Any

import pytest

from headless_mermaid import browser as browser_module
from headless_mermaid.browser import INITIALIZE_SCRIPT
from headless_mermaid.render import RENDER_SCRIPT


def fake_svg(diagram_id: str, definition: str) -> str:
    return f'<svg id="{diagram_id}" class="mermaid">{escape(definition)}</svg>'


@dataclass
class FakeDriver:
    """In-memory stand-in for Playwright, Chromium and the Mermaid page."""

    launches: list[dict[str, Any]] = field(default_factory=list)
    viewports: list[dict[str, int]] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)
    scripts: list[dict[str, str]] = field(default_factory=list)
    init_options: list[dict[str, Any]] = field(default_factory=list)
    render_calls: list[tuple[str, str]] = field(default_factory=list)
    finished: list[str] = field(default_factory=list)
    starts: int = 0
    browser_closes: int = 0
    driver_stops: int = 0
    init_error: Any = None
    launch_error: Exception | None = None
    page_error: BaseException | None = None
    render_errors: dict[str, Any] = field(default_factory=dict)
    render_delays: dict[str, int] = field(default_factory=dict)

    def starter(self) -> _FakeStarter:
        return _FakeStarter(self)


class _FakeStarter:
    def __init__(self, driver: FakeDriver) -> None:
        self._driver = driver

    async def start(self) -> _FakePlaywright:
        self._driver.starts += 1
        return _FakePlaywright(self._driver)


class _FakeChromium:
    def __init__(self, driver: FakeDriver) -> None:
        self._driver = driver

    async def launch(self, **kwargs: Any) -> _FakeBrowser:
        self._driver.launches.append(kwargs)
        if self._driver.launch_error is not None:
            raise self._driver.launch_error
        return _FakeBrowser(self._driver)


class _FakePlaywright:
    def __init__(self, driver: FakeDriver) -> None:
        self._driver = driver
        self.chromium = _FakeChromium(driver)

    async def stop(self) -> None:
        self._driver.driver_stops += 1


class _FakeBrowser:
    def __init__(self, driver: FakeDriver) -> None:
        self._driver = driver

    async def new_page(self) -> _FakePage:
        if self._driver.page_error is not None:
            raise self._driver.page_error
        return _FakePage(self._driver)

    async def close(self) -> None:
        self._driver.browser_closes += 1


class _FakePage:
    def __init__(self, driver: FakeDriver) -> None:
        self._driver = driver

    async def set_viewport_size(self, size: dict[str, int]) -> None:
        self._driver.viewports.append(size)

    async def goto(self, url: str) -> None:
        self._driver.urls.append(url)

    async def add_script_tag(self, **kwargs: str) -> None:
        self._driver.scripts.append(kwargs)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if expression == INITIALIZE_SCRIPT:
            self._driver.init_options.append(arg)
            if self._driver.init_error is not None:
                return {"success": False, "error": self._driver.init_error}
            return {"success": True, "error": None}

        if expression == RENDER_SCRIPT:
            diagram_id, definition = arg
            self._driver.render_calls.append((diagram_id, definition))
            for _ in range(self._driver.render_delays.get(definition, 1)):
                await asyncio.sleep(0)
            self._driver.finished.append(definition)
            if definition in self._driver.render_errors:
                return {
                    "success": False,
                    "svgCode": None,
                    "error": self._driver.render_errors[definition],
                }
            return {"success": True, "svgCode": fake_svg(diagram_id, definition), "error": None}

        raise AssertionError(f"unexpected script: {expression!r}")


def js_error(message: str, stack: str = "Error: boom\n    at render (mermaid.js:1:1)") -> str:
    """Mimic ``JSON.stringify(e, Object.getOwnPropertyNames(e))`` for an Error."""
    return json.dumps({"stack": stack, "message": message})


@pytest.fixture
def fake_driver(monkeypatch: pytest.MonkeyPatch) -> FakeDriver:
    driver = FakeDriver()
    monkeypatch.setattr(browser_module, "async_playwright", driver.starter)
    return driver
