"""Page gestures used while recording: scroll animations and consent banners."""

from playwright.async_api import Error as PlaywrightError, Page

from interactor import LocatorCandidate as C, click, resolve_and_act

CONSENT_CANDIDATES = [
    C.by_role("button", name=r"^(accept|accept all|i accept|i agree|ok|got it)$"),
    C.css("[data-testid*='accept']"),
    C.css("button:has-text('Accept')"),
]

SMOOTH_SCROLL_DOWN_JS = """
async (steps) => {
    const distance = document.body.scrollHeight - window.innerHeight;
    const stepSize = distance / steps;
    for (let i = 0; i < steps; i++) {
        window.scrollBy(0, stepSize);
        await new Promise(r => setTimeout(r, 50));
    }
}
"""

SMOOTH_SCROLL_UP_JS = """
async (steps) => {
    const stepSize = window.scrollY / steps;
    for (let i = 0; i < steps; i++) {
        window.scrollBy(0, -stepSize);
        await new Promise(r => setTimeout(r, 50));
    }
}
"""

# Scrolls every overflowing container down and back up
INNER_SCROLL_JS = """
async (steps) => {
    const scrollables = Array.from(document.querySelectorAll('*')).filter(el => {
        const s = window.getComputedStyle(el);
        return (['auto', 'scroll'].includes(s.overflow) || ['auto', 'scroll'].includes(s.overflowY))
            && el.scrollHeight > el.clientHeight;
    });
    for (const el of scrollables) {
        const stepSize = (el.scrollHeight - el.clientHeight) / steps;
        for (let i = 0; i < steps; i++) {
            el.scrollTop += stepSize;
            await new Promise(r => setTimeout(r, 50));
        }
        await new Promise(r => setTimeout(r, 500));
        for (let i = 0; i < steps; i++) {
            el.scrollTop -= stepSize;
            await new Promise(r => setTimeout(r, 50));
        }
    }
    return scrollables.length;
}
"""


async def smooth_scroll(page: Page, direction: str = "down", pause_ms: int = 1500, steps: int = 20) -> bool:
    """Animate a scroll to the bottom (or back to the top) of the page."""
    script = SMOOTH_SCROLL_DOWN_JS if direction == "down" else SMOOTH_SCROLL_UP_JS
    try:
        await page.evaluate(script, steps)
        await page.wait_for_timeout(pause_ms)
        return True
    except PlaywrightError as e:
        print(f"    [scroll] {direction} failed: {e}", flush=True)
        return False


async def scroll_inner_content(page: Page, pause_ms: int = 1500, steps: int = 15) -> int:
    """Scroll inner scrollable panels (detail pages). Returns how many were scrolled."""
    try:
        count = await page.evaluate(INNER_SCROLL_JS, steps)
        await page.wait_for_timeout(pause_ms)
        return count or 0
    except PlaywrightError as e:
        print(f"    [scroll] inner content failed: {e}", flush=True)
        return 0


async def dismiss_consent(page: Page, timeout_ms: int = 1000) -> bool:
    """Click the first visible consent button, if any."""
    resolution = await resolve_and_act(page, CONSENT_CANDIDATES, click(), timeout_ms)
    if resolution.succeeded:
        print(f"    [consent] dismissed via candidate {resolution.candidate_index}", flush=True)
    return resolution.succeeded
