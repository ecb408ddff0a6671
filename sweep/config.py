import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (parent of sweep/)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


TARGET_FLOW = os.getenv("TARGET_FLOW", "passport")
DEVICES = [
    d.strip() for d in os.getenv(
        "DEVICES",
        "iPhone SE,iPhone 13 Pro,iPhone 14 Pro Max,Pixel 5,Galaxy S9+,Galaxy S24",
    ).split(",") if d.strip()
]
HEADLESS = _env_bool("HEADLESS", True)

OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", "output"))
RESULTS_FILE = Path(os.getenv("RESULTS_FILE", str(OUTPUT_DIR / "test-results.json")))
SCREENSHOT_DIR = Path(os.getenv("SCREENSHOT_DIR", str(OUTPUT_DIR / "screenshots")))
VIDEO_DIR = Path(os.getenv("VIDEO_DIR", str(OUTPUT_DIR / "videos")))

# Timeouts (ms)
CANDIDATE_TIMEOUT_MS = _env_int("CANDIDATE_TIMEOUT_MS", 3000)
OUTCOME_TIMEOUT_MS = _env_int("OUTCOME_TIMEOUT_MS", 10000)
NAVIGATION_TIMEOUT_MS = _env_int("NAVIGATION_TIMEOUT_MS", 60000)

# Poll intervals for outcome detection (ms)
URL_POLL_MS = _env_int("URL_POLL_MS", 100)
TEXT_POLL_MS = _env_int("TEXT_POLL_MS", 250)

# The app animates screen transitions; pages need this long to settle after goto
SETTLE_DELAY_MS = _env_int("SETTLE_DELAY_MS", 2000)
# Keep recording the landing page after a redirect (0 disables)
POST_REDIRECT_DWELL_MS = _env_int("POST_REDIRECT_DWELL_MS", 0)
