"""Environment configuration for story-maker.

Values are read once at import time.  The image-provider credential is the
only secret; everything else has a working default.
"""
from __future__ import annotations

import os


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = int(os.getenv(name, str(default)))
    except ValueError:
        return default
    return value if value > 0 else default


STABILITY_API_KEY: str | None = os.getenv("STABILITY_API_KEY")
STABILITY_BASE_URL: str = os.getenv("STABILITY_BASE_URL", "https://api.stability.ai")
STABILITY_ENGINE: str = os.getenv("STABILITY_ENGINE", "stable-diffusion-xl-1024-v1-0")
STABILITY_TIMEOUT_SECONDS: float = _float_env("STABILITY_TIMEOUT_SECONDS", 60.0)

STORY_MAKER_LOG_LEVEL: str = os.getenv("STORY_MAKER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
SHOT_PROGRESS_TARGET: int = _int_env("SHOT_PROGRESS_TARGET", 10)
