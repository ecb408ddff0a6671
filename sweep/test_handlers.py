import asyncio
import pytest
from playwright.async_api import Error as PlaywrightError

from fake_page import FakeElement, FakePage
from handlers import dismiss_consent, scroll_inner_content, smooth_scroll


def test_dismiss_consent_clicks_first_visible_button():
    page = FakePage({"button:has-text('Accept')": FakeElement()})
    assert asyncio.run(dismiss_consent(page)) is True
    assert page.actions == [("click", "button:has-text('Accept')")]


def test_dismiss_consent_without_banner():
    page = FakePage()
    assert asyncio.run(dismiss_consent(page)) is False
    assert page.actions == []


def test_smooth_scroll():
    assert asyncio.run(smooth_scroll(FakePage(), "down", pause_ms=0)) is True
    assert asyncio.run(smooth_scroll(FakePage(), "up", pause_ms=0)) is True


def test_scroll_failures_are_not_fatal():
    class ClosedPage(FakePage):
        async def evaluate(self, script, arg=None):
            raise PlaywrightError("Target page, context or browser has been closed")

    assert asyncio.run(smooth_scroll(ClosedPage(), "down", pause_ms=0)) is False
    assert asyncio.run(scroll_inner_content(ClosedPage(), pause_ms=0)) == 0
