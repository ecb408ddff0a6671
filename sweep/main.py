import asyncio
import argparse
import sys
from pathlib import Path

# Force unbuffered output
sys.stdout.reconfigure(line_buffering=True)
sys.stderr.reconfigure(line_buffering=True)

import config
from browser import BrowserController, date_label
from runner import ScenarioSweep, SweepSettings
from scenarios import DEFAULT_SCENARIOS, get_flow, load_scenarios


async def main(
    headless: bool = config.HEADLESS,
    flow_name: str = config.TARGET_FLOW,
    devices: list[str] | None = None,
    scenarios_file: Path | None = None,
    results_file: Path = config.RESULTS_FILE,
) -> dict:
    flow = get_flow(flow_name)
    scenarios = load_scenarios(scenarios_file, flow) if scenarios_file else DEFAULT_SCENARIOS
    devices = devices or config.DEVICES
    day = date_label()

    print(f"Starting device sweep - {day}", flush=True)
    print(f"Flow: {flow.name} ({flow.start_url})", flush=True)
    print(f"Devices: {len(devices)}, scenarios: {len(scenarios)}", flush=True)
    print(f"Headless: {headless}", flush=True)
    print("-" * 50, flush=True)

    browser = BrowserController(video_dir=config.VIDEO_DIR)
    await browser.start(headless=headless)
    try:
        sweep = ScenarioSweep(browser, flow, scenarios, devices, SweepSettings(), day=day)
        results = await sweep.run()
    finally:
        await browser.stop()

    saved = results.save(results_file)
    print(f"\nResults saved to: {saved}")
    results.print_summary()
    return results.to_dict()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Replay form-validation scenarios across emulated devices")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--flow", default=config.TARGET_FLOW, help="Form flow to test (passport, mint)")
    parser.add_argument(
        "--devices",
        help="Comma-separated Playwright device names (default: DEVICES from the environment)",
    )
    parser.add_argument("--scenarios", type=Path, help="JSON file with a scenario table")
    parser.add_argument("--results", type=Path, default=config.RESULTS_FILE, help="Where to write results JSON")
    args = parser.parse_args()

    devices = [d.strip() for d in args.devices.split(",") if d.strip()] if args.devices else None
    asyncio.run(main(
        headless=config.HEADLESS and not args.headed,
        flow_name=args.flow,
        devices=devices,
        scenarios_file=args.scenarios,
        results_file=args.results,
    ))


if __name__ == "__main__":
    cli()
