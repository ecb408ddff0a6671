import os
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, AsyncIterator
from urllib.parse import urlparse

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

# Hide the most obvious automation markers before page scripts run
STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""

# Keys in Playwright's device registry that are not browser-context options
_NON_CONTEXT_KEYS = {"default_browser_type"}


class UnknownDevice(Exception):
    pass


def device_slug(name: str) -> str:
    """'Galaxy S9+' -> 'galaxy-s9-plus'"""
    return re.sub(r"\s+", "-", name.strip().lower()).replace("+", "-plus")


def date_label(day: date | None = None) -> str:
    return (day or date.today()).strftime("%d-%m-%Y")


@dataclass(frozen=True)
class DeviceProfile:
    name: str
    descriptor: dict[str, Any] = field(default_factory=dict)

    @property
    def slug(self) -> str:
        return device_slug(self.name)

    def context_options(self) -> dict[str, Any]:
        return {k: v for k, v in self.descriptor.items() if k not in _NON_CONTEXT_KEYS}


def _proxy_from_env() -> dict | None:
    proxy_url = (os.environ.get("HTTPS_PROXY") or os.environ.get("HTTP_PROXY")
                 or os.environ.get("https_proxy") or os.environ.get("http_proxy"))
    if not proxy_url:
        return None
    parsed = urlparse(proxy_url)
    proxy = {"server": f"{parsed.scheme}://{parsed.hostname}:{parsed.port}"}
    if parsed.username:
        proxy["username"] = parsed.username
        proxy["password"] = parsed.password or ""
    return proxy


class BrowserController:
    """One Chromium per sweep, one recorded context per device."""

    def __init__(self, video_dir: Path, locale: str = "en-US", timezone_id: str = "America/New_York"):
        self.video_dir = Path(video_dir)
        self.locale = locale
        self.timezone_id = timezone_id
        self.playwright: Playwright | None = None
        self.browser: Browser | None = None

    async def start(self, headless: bool = True) -> None:
        """Launch the browser."""
        self.playwright = await async_playwright().start()
        launch_kwargs: dict[str, Any] = {"headless": headless, "args": LAUNCH_ARGS}
        proxy = _proxy_from_env()
        if proxy:
            launch_kwargs["proxy"] = proxy
        self.browser = await self.playwright.chromium.launch(**launch_kwargs)

    async def stop(self) -> None:
        """Close browser and Playwright."""
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None

    def device_profile(self, name: str) -> DeviceProfile:
        if self.playwright is None:
            raise RuntimeError("BrowserController.start() must be called first")
        descriptor = self.playwright.devices.get(name)
        if descriptor is None:
            raise UnknownDevice(f'Device "{name}" not found in Playwright devices')
        return DeviceProfile(name=name, descriptor=dict(descriptor))

    @asynccontextmanager
    async def device_context(self, profile: DeviceProfile, day: str | None = None) -> AsyncIterator[Page]:
        """Open a recorded context for `profile` and yield its page.

        The context is always closed on exit, which flushes the video; the
        video is then renamed to ``{device}-{date}.webm``.
        """
        if self.browser is None:
            raise RuntimeError("BrowserController.start() must be called first")
        self.video_dir.mkdir(parents=True, exist_ok=True)
        options = profile.context_options()
        context: BrowserContext = await self.browser.new_context(
            **options,
            record_video_dir=str(self.video_dir),
            record_video_size=options.get("viewport"),
            locale=self.locale,
            timezone_id=self.timezone_id,
        )
        page = None
        try:
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            page = await context.new_page()
            yield page
        finally:
            await context.close()
            if page is not None:
                await self._rename_video(page, profile, day or date_label())

    async def _rename_video(self, page: Page, profile: DeviceProfile, day: str) -> Path | None:
        video = page.video
        if video is None:
            return None
        source = Path(await video.path())
        if not source.exists():
            print(f"  [video] not found for {profile.name}", flush=True)
            return None
        target = self.video_dir / f"{profile.slug}-{day}.webm"
        source.replace(target)
        print(f"  [video] saved {target}", flush=True)
        return target
