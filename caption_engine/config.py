"""Configuration constants, timing knobs, and .env loading.

WHY: The debounce windows, windowing geometry, and animation constants are
shared between the preview engine and anything that has to agree with it
(the export renderer, tests, the CLI sampler). Keeping them in one place
makes drift between those consumers visible.

HOW: python-dotenv loads the .env file on import. Constants are module-level
values, each overridable through an environment variable of the same name.
load_base_url() gives the transcript API location.

RULES:
- All durations are float seconds
- Heights and scroll offsets are pixels
- Highlight scale is stored as a percentage (110 → 1.10x)
- Never hardcode the API location in callers; use load_base_url()
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    return int(value) if value else default


# ---------------------------------------------------------------------------
# Transcript API
# ---------------------------------------------------------------------------

CAPTION_API_BASE_URL = os.getenv("CAPTION_API_BASE_URL", "http://localhost:8000/api")
CAPTION_API_TIMEOUT_S = _env_float("CAPTION_API_TIMEOUT_S", 30.0)

# ---------------------------------------------------------------------------
# Debounce / idle windows
# ---------------------------------------------------------------------------

CAPTION_EDIT_DEBOUNCE_S = _env_float("CAPTION_EDIT_DEBOUNCE_S", 0.3)
"""Quiet period before a live caption edit is pushed to external overlays."""

AUTO_SCROLL_DEBOUNCE_S = _env_float("AUTO_SCROLL_DEBOUNCE_S", 0.5)
"""Minimum spacing between two programmatic auto-scrolls."""

USER_SCROLL_IDLE_S = _env_float("USER_SCROLL_IDLE_S", 3.0)
"""Auto-scroll stays suspended until the user has not scrolled for this long."""

# ---------------------------------------------------------------------------
# Edit history
# ---------------------------------------------------------------------------

MAX_HISTORY = _env_int("MAX_HISTORY", 50)

# ---------------------------------------------------------------------------
# Timing index and windowing
# ---------------------------------------------------------------------------

LINEAR_SCAN_THRESHOLD = _env_int("LINEAR_SCAN_THRESHOLD", 16)
VIRTUALIZATION_THRESHOLD = _env_int("VIRTUALIZATION_THRESHOLD", 50)
OVERSCAN_COUNT = _env_int("OVERSCAN_COUNT", 5)
ESTIMATED_ITEM_HEIGHT = _env_int("ESTIMATED_ITEM_HEIGHT", 72)

# ---------------------------------------------------------------------------
# Animation
# ---------------------------------------------------------------------------

PAST_WORD_OPACITY = 0.6
DEFAULT_HIGHLIGHT_SCALE_PCT = 110
DEFAULT_TEXT_COLOR = "#FFFFFF"

CAPTION_WINDOW_S = _env_float("CAPTION_WINDOW_S", 3.0)
"""Words further than this from the playhead are dropped from a caption frame."""

CAPTION_WINDOW_MIN_WORDS = _env_int("CAPTION_WINDOW_MIN_WORDS", 12)
"""Segments with at most this many words are always rendered whole."""


def load_base_url() -> str:
    """Return the transcript API base URL without a trailing slash.

    RULES:
    - Reads CAPTION_API_BASE_URL (populated by python-dotenv)
    - Raises ValueError if the value is empty
    """
    url = os.getenv("CAPTION_API_BASE_URL", CAPTION_API_BASE_URL).strip()
    if not url:
        raise ValueError(
            "Transcript API location not configured. "
            "Set CAPTION_API_BASE_URL in the .env file."
        )
    return url.rstrip("/")
