"""Declarative form flows and validation scenarios."""

import json
import time
from pathlib import Path
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from interactor import LocatorCandidate as C


class InteractionScenario(BaseModel):
    """One input value and the outcome it should produce."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    expect_error: bool
    expected_text: Optional[str] = None
    timeout_ms: Optional[int] = None

    def render_value(self, now: Optional[float] = None) -> str:
        """Fill in `{timestamp}` so every replay submits a fresh value."""
        stamp = str(int((now if now is not None else time.time()) * 1000))
        return self.value.replace("{timestamp}", stamp)


class FlowStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    action: Literal["click", "fill", "select"]
    candidates: list[C]
    value: Optional[str] = None
    required: bool = True
    force: bool = False
    # Fixed wait after the action, for the app's own transitions
    pause_ms: int = 0
    screenshot: bool = False


class NavigationCheck(BaseModel):
    """A walk through the signed-in app, recorded as its own outcome."""
    model_config = ConfigDict(frozen=True)

    name: str
    steps: list[FlowStep]


class FormFlow(BaseModel):
    """How to reach and submit the form under test."""
    model_config = ConfigDict(frozen=True)

    name: str
    start_url: str
    setup_steps: list[FlowStep] = Field(default_factory=list)
    field_under_test: list[C]
    submit: list[C]
    error_patterns: list[str]
    success_patterns: list[str] = Field(default_factory=list)
    error_indicators: list[C] = Field(default_factory=list)
    success_indicators: list[C] = Field(default_factory=list)
    consent_banner: bool = False
    # Run once per device, right after the first successful sign-in
    navigation: list[NavigationCheck] = Field(default_factory=list)


# Back arrow shared by the detail pages of the passport app
_BACK = [C.css(".clickable-element.baTaUhp"), C.css("header .clickable-element:first-child")]


def _tab(label: str) -> list[C]:
    return [C.css(f'div:has(> img) > div:has-text("{label}")'), C.by_text(label, exact=True)]


def _click(name: str, candidates: list[C], required: bool = True, force: bool = False,
           pause_ms: int = 2000, screenshot: bool = False) -> FlowStep:
    return FlowStep(name=name, action="click", candidates=candidates, required=required,
                    force=force, pause_ms=pause_ms, screenshot=screenshot)


PASSPORT_NAVIGATION = [
    NavigationCheck(name="collection", steps=[
        _click("first_collectible", [
            C.by_id("collectible1"),
            C.css("[id*='collectible']"),
            C.css(".bubble-element.RepeatingGroup .group-item:first-child .clickable-element"),
        ]),
        _click("back", _BACK + [C.by_text("Collection", exact=True)], required=False, force=True),
    ]),
    NavigationCheck(name="benefits", steps=[
        _click("benefits_tab", _tab("Benefits"), force=True, pause_ms=3000),
        _click("first_benefit", [C.by_id("benefit1"), C.css("[id*='benefit']")]),
        _click("back", _BACK, required=False),
    ]),
    NavigationCheck(name="hunt", steps=[
        _click("hunt_tab", _tab("Hunt"), force=True, pause_ms=3000),
        _click("first_hunt", [C.by_id("hunt1")]),
        _click("leaderboard_tab", _tab("Leaderboard"), force=True),
    ]),
    NavigationCheck(name="leaderboard", steps=[
        _click("see_more", [C.css('div:has-text("See more")')], required=False),
    ]),
    NavigationCheck(name="scan", steps=[
        _click("scan_button", [C.by_id("scanbutton")], pause_ms=7000, screenshot=True),
        _click("close_scan", [C.by_id("backbuttonscan")], force=True),
    ]),
    NavigationCheck(name="settings", steps=[
        _click("settings_button", [C.by_id("settingsbutton")]),
        _click("help", [C.by_id("helpbutton")], required=False),
        _click("help_back", [C.by_id("backbuttonhelp")], required=False, pause_ms=1500),
        _click("terms", [C.by_id("tcbutton")], required=False),
        _click("terms_back", [C.by_id("backbutton")], required=False, pause_ms=1500),
        _click("privacy", [C.by_id("ppbutton")], required=False),
        _click("privacy_back", [C.by_id("backbutton")], required=False, pause_ms=1500),
        _click("sign_out", [C.by_id("signout")], pause_ms=3000),
    ]),
]

PASSPORT_FLOW = FormFlow(
    name="passport",
    start_url="https://passport.poap.studio/version-32bmw/collection/custom-demo-flow-1/welcome",
    setup_steps=[
        # Only shown on first visit; later resets land straight on the login form
        FlowStep(
            name="start",
            action="click",
            candidates=[
                C.by_role("button", name=r"^start$"),
                C.by_text("Start", exact=True),
            ],
            required=False,
        ),
    ],
    field_under_test=[
        C.css("input[type='email']"),
        C.by_placeholder("email"),
        C.css("input"),
    ],
    submit=[
        C.by_id("button_start"),
        C.by_role("button", name=r"connect|continue|log\s*in"),
        C.by_text("Connect", exact=True),
    ],
    error_patterns=[
        r"invalid|incorrect|must provide|valid address|valid ens|valid e-?mail",
        r"\berror\b",
    ],
    success_patterns=[r"welcome back", r"my collection"],
    navigation=PASSPORT_NAVIGATION,
)

MINT_FLOW = FormFlow(
    name="mint",
    start_url="https://mint.poap.studio/version-72bms/index-20/customdemoflow05",
    setup_steps=[
        FlowStep(
            name="open_form",
            action="click",
            candidates=[C.by_text("I want this", exact=True), C.by_role("button", name=r"i want this")],
        ),
        FlowStep(
            name="first_name",
            action="fill",
            value="Juan Carlos",
            candidates=[C.css("input[name='name']"), C.css("input[placeholder*='Name']"),
                        C.css("input[placeholder*='name']")],
        ),
        FlowStep(
            name="last_name",
            action="fill",
            value="Rodríguez",
            candidates=[C.css("input[name='lastname']"), C.css("input[name='lastName']"),
                        C.css("input[placeholder*='Last']"), C.css("input[placeholder*='last']")],
        ),
        FlowStep(
            name="address",
            action="fill",
            value="123 Main Street, Apt 4B",
            candidates=[C.css("input[name='address']"), C.css("input[placeholder*='ddress']")],
        ),
        FlowStep(
            name="open_dropdown",
            action="click",
            candidates=[C.by_text("Select from the list", exact=True)],
            required=False,
        ),
        FlowStep(
            name="dropdown_option",
            action="click",
            candidates=[C.by_text("Option 1", exact=True)],
            required=False,
        ),
        # Native <select> variant of the same dropdown
        FlowStep(
            name="dropdown_select",
            action="select",
            value="Option 1",
            candidates=[C.css("select")],
            required=False,
        ),
    ],
    field_under_test=[
        C.css("input[name='email']"),
        C.css("input[type='email']"),
        C.css("input[placeholder*='mail']"),
        C.css("input[placeholder*='ETH']"),
        C.css("input[placeholder*='ENS']"),
    ],
    submit=[C.by_text("Test", exact=True), C.by_role("button", name=r"^(test|submit|claim)$")],
    error_patterns=[r"invalid|fail|\berror\b"],
    success_patterns=[r"success", r"thank", r"complete", r"congratulations"],
    error_indicators=[C.css("[class*='error']"), C.css("[role='alert']")],
    success_indicators=[C.css("[class*='success']"), C.css("[class*='confirmation']")],
)

FLOWS = {flow.name: flow for flow in (PASSPORT_FLOW, MINT_FLOW)}

DEFAULT_SCENARIOS = (
    InteractionScenario(name="validation_email", value="notanemail", expect_error=True, timeout_ms=6000),
    InteractionScenario(name="validation_eth", value="cuchipandoeeee.eth", expect_error=True, timeout_ms=6000),
    InteractionScenario(name="validation_ens", value="0x4444", expect_error=True, timeout_ms=6000),
    InteractionScenario(name="login", value="qa+{timestamp}@example.com", expect_error=False, timeout_ms=10000),
)

_scenario_list = TypeAdapter(list[InteractionScenario])


def get_flow(name: str) -> FormFlow:
    try:
        return FLOWS[name]
    except KeyError:
        raise ValueError(f"Unknown flow {name!r} (known: {', '.join(sorted(FLOWS))})") from None


def validate_scenario_names(scenarios: Sequence[InteractionScenario], flow: Optional[FormFlow] = None) -> None:
    """Scenario names key the results file, so they must be unique.

    `error` holds device-level failures and the names of the flow's
    navigation checks hold their outcomes; both are reserved.
    """
    names = [s.name for s in scenarios]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Duplicate scenario names: {', '.join(duplicates)}")
    reserved = {"error"} | {check.name for check in (flow.navigation if flow else [])}
    clashes = sorted(reserved.intersection(names))
    if clashes:
        raise ValueError(f"Scenario names are reserved: {', '.join(clashes)}")


def load_scenarios(path: Path, flow: Optional[FormFlow] = None) -> tuple[InteractionScenario, ...]:
    """Load a scenario table from a JSON list."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    scenarios = tuple(_scenario_list.validate_python(data))
    validate_scenario_names(scenarios, flow)
    return scenarios
