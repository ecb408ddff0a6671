"""Device sweep: replay every scenario on every emulated device."""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from playwright.async_api import Page

import config
import interactor
from browser import BrowserController, DeviceProfile
from handlers import dismiss_consent, scroll_inner_content, smooth_scroll
from outcome import ErrorText, Outcome, Redirected, SuccessText, TimedOut, wait_for_outcome
from results import ResultsRecorder, Status, TestOutcome
from scenarios import FlowStep, FormFlow, InteractionScenario, NavigationCheck, validate_scenario_names


class StepNotResolved(Exception):
    """A required flow step found none of its candidates."""


@dataclass
class SweepSettings:
    candidate_timeout_ms: int = config.CANDIDATE_TIMEOUT_MS
    outcome_timeout_ms: int = config.OUTCOME_TIMEOUT_MS
    navigation_timeout_ms: int = config.NAVIGATION_TIMEOUT_MS
    url_poll_ms: int = config.URL_POLL_MS
    text_poll_ms: int = config.TEXT_POLL_MS
    settle_delay_ms: int = config.SETTLE_DELAY_MS
    post_redirect_dwell_ms: int = config.POST_REDIRECT_DWELL_MS
    screenshot_dir: Path = field(default_factory=lambda: config.SCREENSHOT_DIR)


def judge(scenario: InteractionScenario, observed: Outcome) -> tuple[Status, str]:
    """Map an observed outcome onto pass/fail for this scenario."""
    if isinstance(observed, (ErrorText, SuccessText)) and scenario.expected_text:
        if scenario.expected_text.lower() not in observed.matched.lower():
            return "fail", f"expected text {scenario.expected_text!r} not in {observed.matched!r}"

    if scenario.expect_error:
        if isinstance(observed, ErrorText):
            return "pass", f"validation error shown: {observed.matched!r}"
        if isinstance(observed, TimedOut):
            # No redirect and no success message: the input was not accepted
            return "pass", "no error text, but the form did not accept the input"
        if isinstance(observed, Redirected):
            return "fail", f"invalid input accepted, redirected to {observed.url}"
        return "fail", f"invalid input accepted: {observed.matched!r}"

    if isinstance(observed, Redirected):
        return "pass", f"redirected to {observed.url}"
    if isinstance(observed, SuccessText):
        return "pass", f"success message shown: {observed.matched!r}"
    if isinstance(observed, ErrorText):
        return "fail", f"unexpected error: {observed.matched!r}"
    return "fail", "no redirect or success message before timeout"


def _signed_in(scenario: InteractionScenario, outcome: TestOutcome) -> bool:
    return not scenario.expect_error and outcome.status == "pass" and outcome.redirect_url is not None


class ScenarioSweep:
    def __init__(
        self,
        browser: BrowserController,
        flow: FormFlow,
        scenarios: Sequence[InteractionScenario],
        devices: Sequence[str],
        settings: SweepSettings | None = None,
        day: str | None = None,
    ):
        validate_scenario_names(scenarios, flow)
        self.browser = browser
        self.flow = flow
        self.scenarios = list(scenarios)
        self.devices = list(devices)
        self.settings = settings or SweepSettings()
        self.day = day

    async def run(self) -> ResultsRecorder:
        results = ResultsRecorder()
        for device in self.devices:
            print(f"\n{'='*60}", flush=True)
            print(f"Testing on: {device}", flush=True)
            print(f"{'='*60}", flush=True)
            results.start_device(device)
            device_start = time.time()
            try:
                profile = self.browser.device_profile(device)
                async with self.browser.device_context(profile, self.day) as page:
                    toured = False
                    for scenario in self.scenarios:
                        outcome = await self.run_scenario(page, profile, scenario)
                        results.record(outcome)
                        if not toured and self.flow.navigation and _signed_in(scenario, outcome):
                            for check in self.flow.navigation:
                                results.record(await self.run_check(page, profile, check))
                            toured = True
            except Exception as e:
                print(f"  ERROR testing {device}: {e}", flush=True)
                results.record_device_error(device, str(e))
            print(f"  [{time.time() - device_start:.1f}s] {device} done", flush=True)
        return results

    async def run_scenario(
        self, page: Page, profile: DeviceProfile, scenario: InteractionScenario
    ) -> TestOutcome:
        """Run one scenario; any exception becomes an `error` outcome."""
        print(f"\n--- {scenario.name} ({'expect error' if scenario.expect_error else 'expect success'}) ---",
              flush=True)
        try:
            return await self._drive(page, profile, scenario)
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            print(f"  {scenario.name} ERROR: {message}", flush=True)
            return TestOutcome(
                scenario=scenario.name,
                device=profile.name,
                status="error",
                message=message,
                screenshot=await self._screenshot(page, profile, scenario.name),
            )

    async def run_check(self, page: Page, profile: DeviceProfile, check: NavigationCheck) -> TestOutcome:
        """Walk one navigation check of the signed-in app.

        A required step with no visible candidate fails the check; any other
        exception makes it an `error`. Either way the sweep goes on.
        """
        print(f"\n--- {check.name} (navigation) ---", flush=True)
        screenshot = None
        try:
            for step in check.steps:
                acted = await self._run_step(page, step)
                if acted and step.screenshot:
                    screenshot = await self._screenshot(page, profile, check.name)
            await self._dwell(page)
        except StepNotResolved as e:
            print(f"  {check.name} FAIL: {e}", flush=True)
            return TestOutcome(
                scenario=check.name, device=profile.name, status="fail", message=str(e),
                screenshot=await self._screenshot(page, profile, check.name),
            )
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            print(f"  {check.name} ERROR: {message}", flush=True)
            return TestOutcome(
                scenario=check.name, device=profile.name, status="error", message=message,
                screenshot=await self._screenshot(page, profile, check.name),
            )
        print(f"  {check.name}: PASS", flush=True)
        return TestOutcome(
            scenario=check.name, device=profile.name, status="pass",
            message=f"navigated {check.name}", screenshot=screenshot,
        )

    async def _drive(self, page: Page, profile: DeviceProfile, scenario: InteractionScenario) -> TestOutcome:
        s = self.settings
        await page.goto(self.flow.start_url, wait_until="domcontentloaded", timeout=s.navigation_timeout_ms)
        if s.settle_delay_ms:
            await page.wait_for_timeout(s.settle_delay_ms)
        if self.flow.consent_banner:
            await dismiss_consent(page, s.candidate_timeout_ms)

        for step in self.flow.setup_steps:
            await self._run_step(page, step)

        value = scenario.render_value()
        await self._act(page, "field_under_test", self.flow.field_under_test, interactor.fill(value))
        print(f"  entered: {value}", flush=True)

        origin_url = page.url
        await self._act(page, "submit", self.flow.submit, interactor.click())

        observed = await wait_for_outcome(
            page,
            origin_url,
            success_patterns=self.flow.success_patterns,
            error_patterns=self.flow.error_patterns,
            timeout_ms=scenario.timeout_ms or s.outcome_timeout_ms,
            url_poll_ms=s.url_poll_ms,
            text_poll_ms=s.text_poll_ms,
            error_indicators=self.flow.error_indicators,
            success_indicators=self.flow.success_indicators,
        )
        status, message = judge(scenario, observed)
        print(f"  observed: {observed.kind} -> {status.upper()} ({message})", flush=True)

        screenshot = None
        found_expected_error = scenario.expect_error and isinstance(observed, ErrorText)
        if status == "fail" or (status == "pass" and found_expected_error):
            screenshot = await self._screenshot(page, profile, scenario.name)

        if status == "pass" and isinstance(observed, Redirected):
            await self._dwell(page)

        return TestOutcome(
            scenario=scenario.name,
            device=profile.name,
            status=status,
            message=message,
            screenshot=screenshot,
            redirect_url=observed.url if isinstance(observed, Redirected) else None,
            matched_text=getattr(observed, "matched", None),
        )

    async def _dwell(self, page: Page) -> None:
        # Let the recording show the landing page
        pause = self.settings.post_redirect_dwell_ms
        if not pause:
            return
        await smooth_scroll(page, "down", pause // 2)
        await smooth_scroll(page, "up", pause // 2)
        await scroll_inner_content(page, pause_ms=0)

    async def _run_step(self, page: Page, step: FlowStep) -> bool:
        if step.action == "click":
            action = interactor.click(force=step.force)
        elif step.action == "fill":
            action = interactor.fill(step.value or "")
        else:
            action = interactor.select(step.value or "")
        acted = await self._act(page, step.name, step.candidates, action, required=step.required)
        if acted and step.pause_ms:
            await page.wait_for_timeout(step.pause_ms)
        return acted

    async def _act(self, page: Page, name: str, candidates, action, required: bool = True) -> bool:
        resolution = await interactor.resolve_and_act(
            page, candidates, action, self.settings.candidate_timeout_ms
        )
        if resolution.succeeded:
            print(f"  {name}: {candidates[resolution.candidate_index].describe()}", flush=True)
            return True
        if required:
            raise StepNotResolved(f"no candidate matched for {name!r} ({len(candidates)} tried)")
        print(f"  {name}: not present, skipped", flush=True)
        return False

    async def _screenshot(self, page: Page, profile: DeviceProfile, name: str) -> str | None:
        path = self.settings.screenshot_dir / f"{profile.slug}-{name}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path), full_page=True)
        except Exception as e:
            print(f"  [screenshot] failed: {e}", flush=True)
            return None
        print(f"  [screenshot] {path}", flush=True)
        return str(path)
