import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Status = Literal["pass", "fail", "error"]


class DuplicateOutcome(Exception):
    pass


class TestOutcome(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    __test__: ClassVar[bool] = False

    scenario: str
    device: str
    status: Status
    message: str
    screenshot: Optional[str] = None
    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")
    matched_text: Optional[str] = Field(default=None, alias="matchedText")

    def to_record(self) -> dict:
        return self.model_dump(
            by_alias=True, exclude_none=True, exclude={"scenario", "device"}
        )


@dataclass
class ResultsRecorder:
    """Accumulates one outcome per (device, scenario) over a sweep."""
    outcomes: dict[str, dict[str, TestOutcome]] = field(default_factory=dict)
    device_errors: dict[str, str] = field(default_factory=dict)

    def start_device(self, device: str) -> None:
        self.outcomes.setdefault(device, {})

    def record(self, outcome: TestOutcome) -> None:
        per_device = self.outcomes.setdefault(outcome.device, {})
        if outcome.scenario in per_device:
            raise DuplicateOutcome(f"{outcome.device}/{outcome.scenario} already recorded")
        per_device[outcome.scenario] = outcome

    def record_device_error(self, device: str, message: str) -> None:
        self.outcomes.setdefault(device, {})
        self.device_errors[device] = message

    def to_dict(self) -> dict:
        data = {}
        for device, scenarios in self.outcomes.items():
            entry = {name: outcome.to_record() for name, outcome in scenarios.items()}
            if device in self.device_errors:
                entry["error"] = self.device_errors[device]
            data[device] = entry
        return data

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        return path

    @classmethod
    def load(cls, path: Path) -> "ResultsRecorder":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        recorder = cls()
        for device, entry in data.items():
            recorder.start_device(device)
            for name, record in entry.items():
                if name == "error":
                    recorder.record_device_error(device, record)
                    continue
                recorder.record(TestOutcome(scenario=name, device=device, **record))
        return recorder

    def get_summary(self) -> dict:
        all_outcomes = [o for scenarios in self.outcomes.values() for o in scenarios.values()]
        return {
            "devices": len(self.outcomes),
            "device_errors": len(self.device_errors),
            "total": len(all_outcomes),
            "passed": sum(1 for o in all_outcomes if o.status == "pass"),
            "failed": sum(1 for o in all_outcomes if o.status == "fail"),
            "errors": sum(1 for o in all_outcomes if o.status == "error"),
        }

    def print_summary(self) -> None:
        s = self.get_summary()
        icons = {"pass": "PASS", "fail": "FAIL", "error": "ERROR"}
        print(f"\n{'='*60}")
        print("DEVICE SWEEP - RESULTS")
        print(f"{'='*60}")
        for device, scenarios in self.outcomes.items():
            print(f"{device}:")
            for name, outcome in scenarios.items():
                print(f"  [{icons[outcome.status]:>5}] {name}: {outcome.message}")
            if device in self.device_errors:
                print(f"  [DEVICE ERROR] {self.device_errors[device]}")
        print(f"{'-'*60}")
        print(f"Scenarios: {s['passed']}/{s['total']} passed, "
              f"{s['failed']} failed, {s['errors']} errored")
        if s["device_errors"]:
            print(f"Devices with errors: {s['device_errors']}/{s['devices']}")
        print(f"{'='*60}\n")
