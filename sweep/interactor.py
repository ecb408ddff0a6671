"""Resilient element interaction: ordered selector fallback with bounded visibility waits."""

import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Optional, Sequence

from playwright.async_api import Error as PlaywrightError, Locator, Page
from pydantic import BaseModel, ConfigDict

Action = Callable[[Locator], Awaitable[Any]]


class LocatorCandidate(BaseModel):
    """One strategy for finding a UI element."""
    model_config = ConfigDict(frozen=True)

    engine: Literal["role", "text", "id", "css", "testid", "placeholder", "label"]
    value: Optional[str] = None
    role: Optional[str] = None
    name: Optional[str] = None  # regex, case-insensitive
    text: Optional[str] = None
    exact: bool = False

    @classmethod
    def css(cls, value: str) -> "LocatorCandidate":
        return cls(engine="css", value=value)

    @classmethod
    def by_id(cls, value: str) -> "LocatorCandidate":
        return cls(engine="id", value=value)

    @classmethod
    def by_text(cls, text: str, exact: bool = False) -> "LocatorCandidate":
        return cls(engine="text", text=text, exact=exact)

    @classmethod
    def by_role(cls, role: str, name: Optional[str] = None) -> "LocatorCandidate":
        return cls(engine="role", role=role, name=name)

    @classmethod
    def by_placeholder(cls, value: str) -> "LocatorCandidate":
        return cls(engine="placeholder", value=value)

    def describe(self) -> str:
        if self.engine == "role":
            return f"role={self.role}" + (f" name=/{self.name}/i" if self.name else "")
        if self.engine == "text":
            return f"text={self.text!r}" + (" (exact)" if self.exact else "")
        return f"{self.engine}={self.value}"

    def build(self, page: Page) -> Locator:
        """Build the Playwright locator for this candidate (first match only)."""
        if self.engine == "role":
            if self.name:
                loc = page.get_by_role(self.role, name=re.compile(self.name, re.I))
            else:
                loc = page.get_by_role(self.role)
        elif self.engine == "text":
            loc = page.get_by_text(self.text, exact=self.exact)
        elif self.engine == "id":
            loc = page.locator(f"#{self.value}")
        elif self.engine == "testid":
            loc = page.get_by_test_id(self.value)
        elif self.engine == "placeholder":
            loc = page.get_by_placeholder(self.value)
        elif self.engine == "label":
            loc = page.get_by_label(self.value)
        else:
            loc = page.locator(self.value)
        return loc.first


@dataclass(frozen=True)
class Resolution:
    succeeded: bool
    candidate_index: Optional[int] = None
    result: Any = None


async def resolve_and_act(
    page: Page,
    candidates: Sequence[LocatorCandidate],
    action: Action,
    per_candidate_timeout_ms: int,
) -> Resolution:
    """Perform `action` on the first candidate that becomes visible.

    Candidates are tried one at a time in declared order. A candidate that
    times out or cannot be resolved is skipped. "Nothing matched" is reported
    as ``Resolution(succeeded=False)`` rather than raised.

    Errors raised by the action itself propagate: the action runs at most once.
    """
    for index, candidate in enumerate(candidates):
        try:
            locator = candidate.build(page)
            await locator.wait_for(state="visible", timeout=per_candidate_timeout_ms)
        except PlaywrightError:
            continue
        result = await action(locator)
        return Resolution(succeeded=True, candidate_index=index, result=result)
    return Resolution(succeeded=False)


def fill(value: str) -> Action:
    async def _fill(locator: Locator) -> None:
        await locator.fill(value)
    return _fill


def click(force: bool = False) -> Action:
    async def _click(locator: Locator) -> None:
        await locator.click(force=force)
    return _click


def read_text() -> Action:
    async def _read(locator: Locator) -> str:
        return ((await locator.text_content()) or "").strip()
    return _read


def select(label: str) -> Action:
    async def _select(locator: Locator) -> list[str]:
        return await locator.select_option(label=label)
    return _select
