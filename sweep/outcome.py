"""Outcome classification for a submitted form.

The target app exposes no structured result: only prose messages and URL
changes. After a submit we poll the page for three signals and report the
first one seen:

  * the URL moved away from the pre-submit URL  -> Redirected
  * visible text matches an error pattern        -> ErrorText
  * visible text matches a success pattern       -> SuccessText

If nothing shows up before the timeout the result is TimedOut.

Text is matched in two stages. The HTML snapshot (BeautifulSoup) tells us
which patterns are present in the markup at all; the browser then confirms
that a match is actually rendered, since stylesheet rules are invisible to
the snapshot. Flows may also declare indicator elements (for example
``[class*="error"]``) that count as error or success text when visible.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Pattern, Sequence, Union

from playwright.async_api import Error as PlaywrightError, Page

from dom_parser import compile_patterns, find_text
from interactor import LocatorCandidate


@dataclass(frozen=True)
class Redirected:
    url: str
    kind = "redirected"


@dataclass(frozen=True)
class ErrorText:
    matched: str
    kind = "error_text"


@dataclass(frozen=True)
class SuccessText:
    matched: str
    kind = "success_text"


@dataclass(frozen=True)
class TimedOut:
    kind = "timed_out"


Outcome = Union[Redirected, ErrorText, SuccessText, TimedOut]


def _urls_differ(url: str, origin_url: str) -> bool:
    # Fragment-only changes are not a navigation
    return url.split("#", 1)[0].rstrip("/") != origin_url.split("#", 1)[0].rstrip("/")


def pick_outcome(
    url: str, origin_url: str, error_text: str | None, success_text: str | None
) -> Outcome | None:
    """Apply the per-poll precedence: error text, then redirect, then success text."""
    if error_text is not None:
        return ErrorText(error_text)
    if _urls_differ(url, origin_url):
        return Redirected(url)
    if success_text is not None:
        return SuccessText(success_text)
    return None


def classify_snapshot(
    url: str,
    origin_url: str,
    html: str | None,
    error_patterns: list[Pattern[str]],
    success_patterns: list[Pattern[str]],
) -> Outcome | None:
    """Classify one poll from markup alone. Error text beats a redirect, which beats success text."""
    if html is None:
        return pick_outcome(url, origin_url, None, None)
    return pick_outcome(
        url, origin_url, find_text(html, error_patterns), find_text(html, success_patterns)
    )


async def _snapshot_html(page: Page) -> str | None:
    try:
        return await page.content()
    except PlaywrightError:
        # Page is mid-navigation; the URL check will pick it up
        return None


async def _rendered_text(page: Page, pattern: Pattern[str], timeout_ms: int) -> str | None:
    """Text of the first element matching `pattern` that the browser renders."""
    try:
        matches = page.get_by_text(pattern).filter(visible=True)
        if await matches.count() == 0:
            return None
        text = await matches.first.text_content(timeout=timeout_ms)
    except PlaywrightError:
        return None
    return " ".join((text or "").split()) or None


async def _visible_indicator(
    page: Page, indicators: Sequence[LocatorCandidate], timeout_ms: int
) -> str | None:
    for candidate in indicators:
        try:
            locator = candidate.build(page)
            if not await locator.is_visible():
                continue
            text = await locator.text_content(timeout=timeout_ms)
        except PlaywrightError:
            continue
        return " ".join((text or "").split()) or candidate.describe()
    return None


async def find_rendered(
    page: Page,
    html: str,
    patterns: Sequence[Pattern[str]],
    indicators: Sequence[LocatorCandidate] = (),
    timeout_ms: int = 250,
) -> str | None:
    """First pattern (in order) with a rendered match, then the first visible indicator."""
    for pattern in patterns:
        if find_text(html, [pattern]) is None:
            continue
        matched = await _rendered_text(page, pattern, timeout_ms)
        if matched is not None:
            return matched
    return await _visible_indicator(page, indicators, timeout_ms)


async def wait_for_outcome(
    page: Page,
    origin_url: str,
    success_patterns: Sequence[str],
    error_patterns: Sequence[str],
    timeout_ms: int = 10000,
    url_poll_ms: int = 100,
    text_poll_ms: int = 250,
    error_indicators: Sequence[LocatorCandidate] = (),
    success_indicators: Sequence[LocatorCandidate] = (),
) -> Outcome:
    """Poll the page until a redirect, error text or success text shows up."""
    errors = compile_patterns(error_patterns)
    successes = compile_patterns(success_patterns)

    loop_start = time.monotonic()
    deadline = loop_start + timeout_ms / 1000
    next_text_check = loop_start
    tick = min(url_poll_ms, text_poll_ms) / 1000

    while True:
        now = time.monotonic()
        error_text = success_text = None
        if now >= next_text_check:
            next_text_check = now + text_poll_ms / 1000
            html = await _snapshot_html(page)
            if html is not None:
                # Errors are read first so a lingering message is never masked
                error_text = await find_rendered(page, html, errors, error_indicators, text_poll_ms)
                if error_text is None:
                    success_text = await find_rendered(page, html, successes, success_indicators, text_poll_ms)
        # Read the URL after the content so a navigation that raced the
        # snapshot is still reported
        result = pick_outcome(page.url, origin_url, error_text, success_text)
        if result is not None:
            return result
        if time.monotonic() >= deadline:
            return TimedOut()
        await asyncio.sleep(max(0.0, min(tick, deadline - time.monotonic())))
