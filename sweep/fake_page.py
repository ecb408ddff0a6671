"""In-memory stand-ins for Playwright's Page and Locator used by the tests."""

import re
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Callable, Optional

from bs4 import BeautifulSoup
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser import DeviceProfile, UnknownDevice
from dom_parser import is_hidden, visible_text_blocks


@dataclass
class FakeElement:
    visible: bool = True
    text: str = ""
    value: str = ""
    fail_with: Optional[Exception] = None
    fail_once: bool = False
    on_click: Optional[Callable[["FakePage"], None]] = None


class FakeLocator:
    def __init__(self, page: "FakePage", key: str):
        self.page = page
        self.key = key

    @property
    def first(self) -> "FakeLocator":
        return self

    def _element(self) -> FakeElement:
        return self.page.elements[self.key]

    async def wait_for(self, state: str = "visible", timeout: float | None = None) -> None:
        self.page.lookups.append(self.key)
        element = self.page.elements.get(self.key)
        if element is None or not element.visible:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.key}")

    async def fill(self, value: str) -> None:
        element = self._element()
        if element.fail_with:
            error = element.fail_with
            if element.fail_once:
                element.fail_with = None
            raise error
        self.page.actions.append(("fill", self.key, value))
        element.value = value

    async def click(self, force: bool = False) -> None:
        element = self._element()
        if element.fail_with:
            raise element.fail_with
        self.page.actions.append(("click", self.key))
        if element.on_click:
            element.on_click(self.page)

    async def is_visible(self) -> bool:
        element = self.page.elements.get(self.key)
        return element is not None and element.visible

    async def text_content(self, timeout: float | None = None) -> str:
        return self._element().text

    async def select_option(self, label: str) -> list[str]:
        self.page.actions.append(("select", self.key, label))
        return [label]


class FakeTextLocator:
    """get_by_text(regex) over the page HTML. Only the rendered subset is modelled:
    `FakePage.hidden_classes` play the part of stylesheet rules."""

    def __init__(self, page: "FakePage", pattern: re.Pattern):
        self.page = page
        self.pattern = pattern

    def filter(self, visible: bool | None = None) -> "FakeTextLocator":
        return self

    @property
    def first(self) -> "FakeTextLocator":
        return self

    def _matches(self) -> list[str]:
        soup = BeautifulSoup(self.page.html, "html.parser")
        hidden = [el for el in soup.find_all(True)
                  if is_hidden(el) or set(el.get("class") or []) & self.page.hidden_classes]
        for el in hidden:
            if not el.decomposed:
                el.decompose()
        return [block for block in visible_text_blocks(str(soup)) if self.pattern.search(block)]

    async def count(self) -> int:
        return len(self._matches())

    async def text_content(self, timeout: float | None = None) -> str:
        matches = self._matches()
        if not matches:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for text={self.pattern.pattern}")
        return matches[0]


class FakePage:
    def __init__(self, elements: dict[str, FakeElement] | None = None, html: str = "<html><body></body></html>",
                 url: str = "about:blank", hidden_classes: set[str] | None = None):
        self.elements = elements or {}
        self.start_html = html
        self.html = html
        self.url = url
        self.hidden_classes = hidden_classes or set()
        self.lookups: list[str] = []
        self.actions: list[tuple] = []
        self.visits: list[str] = []
        self.screenshots: list[str] = []

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def get_by_role(self, role: str, name=None) -> FakeLocator:
        key = f"role={role}" if name is None else f"role={role}:{name.pattern}"
        return FakeLocator(self, key)

    def get_by_text(self, text, exact: bool = False):
        if isinstance(text, re.Pattern):
            return FakeTextLocator(self, text)
        return FakeLocator(self, f"text={text}")

    def get_by_placeholder(self, value: str) -> FakeLocator:
        return FakeLocator(self, f"placeholder={value}")

    def get_by_test_id(self, value: str) -> FakeLocator:
        return FakeLocator(self, f"testid={value}")

    def get_by_label(self, value: str) -> FakeLocator:
        return FakeLocator(self, f"label={value}")

    async def goto(self, url: str, **kwargs) -> None:
        self.visits.append(url)
        self.url = url
        self.html = self.start_html

    async def wait_for_timeout(self, ms: float) -> None:
        return None

    async def content(self) -> str:
        return self.html

    async def evaluate(self, script: str, arg=None):
        return 0

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        self.screenshots.append(path)
        return b""


@dataclass
class FakeBrowser:
    """Hands out one fresh FakePage per device."""
    page_factory: Callable[[], FakePage]
    known_devices: set[str] = field(default_factory=set)
    pages: dict[str, FakePage] = field(default_factory=dict)
    closed: list[str] = field(default_factory=list)

    def device_profile(self, name: str) -> DeviceProfile:
        if name not in self.known_devices:
            raise UnknownDevice(f'Device "{name}" not found in Playwright devices')
        return DeviceProfile(name=name, descriptor={"viewport": {"width": 390, "height": 844}})

    @asynccontextmanager
    async def device_context(self, profile: DeviceProfile, day: str | None = None):
        page = self.page_factory()
        self.pages[profile.name] = page
        try:
            yield page
        finally:
            self.closed.append(profile.name)
