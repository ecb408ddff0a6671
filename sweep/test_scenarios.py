import json
import pytest
from scenarios import (
    DEFAULT_SCENARIOS, FLOWS, MINT_FLOW, PASSPORT_FLOW, InteractionScenario, get_flow, load_scenarios,
    validate_scenario_names,
)


def test_render_value_fills_timestamp():
    scenario = InteractionScenario(name="login", value="qa+{timestamp}@example.com", expect_error=False)
    assert scenario.render_value(now=1700000000.5) == "qa+1700000000500@example.com"


def test_render_value_without_placeholder():
    scenario = InteractionScenario(name="bad", value="notanemail", expect_error=True)
    assert scenario.render_value() == "notanemail"


def test_scenarios_are_immutable():
    with pytest.raises(Exception):
        DEFAULT_SCENARIOS[0].value = "changed"


def test_default_scenarios_unique_names():
    names = [s.name for s in DEFAULT_SCENARIOS]
    assert len(names) == len(set(names))
    assert any(not s.expect_error for s in DEFAULT_SCENARIOS)


def test_get_flow():
    assert get_flow("passport") is FLOWS["passport"]
    with pytest.raises(ValueError, match="Unknown flow"):
        get_flow("nope")


def test_flows_have_candidates():
    for flow in FLOWS.values():
        assert flow.field_under_test
        assert flow.submit
        assert flow.error_patterns


def test_load_scenarios(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text(json.dumps([
        {"name": "bad_email", "value": "notanemail", "expect_error": True, "timeout_ms": 6000},
        {"name": "good", "value": "a+{timestamp}@b.co", "expect_error": False, "expected_text": "welcome"},
    ]))
    scenarios = load_scenarios(path)
    assert [s.name for s in scenarios] == ["bad_email", "good"]
    assert scenarios[0].timeout_ms == 6000
    assert scenarios[1].expected_text == "welcome"


def test_load_scenarios_rejects_duplicates(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text(json.dumps([
        {"name": "x", "value": "1", "expect_error": True},
        {"name": "x", "value": "2", "expect_error": True},
    ]))
    with pytest.raises(ValueError, match="Duplicate"):
        load_scenarios(path)


def test_load_scenarios_rejects_reserved_name(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text(json.dumps([{"name": "error", "value": "1", "expect_error": True}]))
    with pytest.raises(ValueError, match="reserved"):
        load_scenarios(path)


def test_load_scenarios_rejects_navigation_check_names(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text(json.dumps([{"name": "settings", "value": "1", "expect_error": True}]))
    assert load_scenarios(path)[0].name == "settings"
    with pytest.raises(ValueError, match="reserved: settings"):
        load_scenarios(path, PASSPORT_FLOW)


def test_validate_scenario_names_accepts_defaults():
    for flow in FLOWS.values():
        validate_scenario_names(DEFAULT_SCENARIOS, flow)


def test_passport_navigation_checks():
    names = [check.name for check in PASSPORT_FLOW.navigation]
    assert names == ["collection", "benefits", "hunt", "leaderboard", "scan", "settings"]
    settings = PASSPORT_FLOW.navigation[-1]
    assert settings.steps[-1].name == "sign_out" and settings.steps[-1].required
    assert any(step.screenshot for step in PASSPORT_FLOW.navigation[4].steps)


def test_mint_flow_declares_select_fallback_and_indicators():
    select_steps = [step for step in MINT_FLOW.setup_steps if step.action == "select"]
    assert len(select_steps) == 1
    assert select_steps[0].value == "Option 1" and not select_steps[0].required
    assert MINT_FLOW.error_indicators and MINT_FLOW.success_indicators
