import json
import pytest
from results import DuplicateOutcome, ResultsRecorder, TestOutcome


def make_recorder() -> ResultsRecorder:
    recorder = ResultsRecorder()
    recorder.record(TestOutcome(
        scenario="validation_email", device="Pixel 5", status="pass",
        message="validation error shown", screenshot="output/screenshots/pixel-5-validation_email.png",
        matched_text="Please enter a valid email",
    ))
    recorder.record(TestOutcome(
        scenario="login", device="Pixel 5", status="pass",
        message="redirected", redirect_url="https://app.example/collection",
    ))
    recorder.record(TestOutcome(
        scenario="login", device="iPhone SE", status="error", message="TimeoutError: detached",
    ))
    recorder.record_device_error("Galaxy S99", 'Device "Galaxy S99" not found in Playwright devices')
    return recorder


def test_results_keyed_by_device_then_scenario():
    data = make_recorder().to_dict()
    assert list(data) == ["Pixel 5", "iPhone SE", "Galaxy S99"]
    assert data["Pixel 5"]["login"] == {
        "status": "pass", "message": "redirected", "redirectUrl": "https://app.example/collection",
    }
    assert data["Pixel 5"]["validation_email"]["matchedText"] == "Please enter a valid email"
    assert "screenshot" not in data["iPhone SE"]["login"]
    assert data["Galaxy S99"] == {"error": 'Device "Galaxy S99" not found in Playwright devices'}


def test_duplicate_outcome_rejected():
    recorder = make_recorder()
    with pytest.raises(DuplicateOutcome):
        recorder.record(TestOutcome(scenario="login", device="Pixel 5", status="fail", message="again"))


def test_outcome_is_immutable():
    outcome = TestOutcome(scenario="s", device="d", status="pass", message="m")
    with pytest.raises(Exception):
        outcome.status = "fail"


def test_save_and_load_round_trip(tmp_path):
    recorder = make_recorder()
    path = recorder.save(tmp_path / "nested" / "results.json")

    assert json.loads(path.read_text()) == recorder.to_dict()
    assert ResultsRecorder.load(path).to_dict() == recorder.to_dict()


def test_summary_counts():
    summary = make_recorder().get_summary()
    assert summary["total"] == 3
    assert summary["passed"] == 2
    assert summary["errors"] == 1
    assert summary["failed"] == 0
    assert summary["device_errors"] == 1


def test_print_summary(capsys):
    make_recorder().print_summary()
    out = capsys.readouterr().out
    assert "2/3 passed" in out
    assert "[DEVICE ERROR]" in out
