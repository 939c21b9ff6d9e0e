"""Caption reading-speed model for clip display durations."""

from __future__ import annotations

import math
import re

from .errors import ConfigurationError

# Characters per minute for Korean captions.
READING_SPEED_PRESETS: dict[str, int] = {
    "slow": 200,
    "normal": 250,
    "fast": 300,
}

_WHITESPACE_RE = re.compile(r"\s+")


def _round_half_up(value: float, places: int = 1) -> float:
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def count_reading_chars(text: str | None) -> int:
    return len(_WHITESPACE_RE.sub("", text or ""))


def calculate_duration(
    text: str | None,
    reading_speed: float = 250,
    min_duration: float = 2.0,
    max_duration: float = 6.0,
    buffer_time: float = 0.5,
) -> float:
    if not text:
        return float(min_duration)
    chars_per_second = float(reading_speed) / 60.0
    base = count_reading_chars(text) / chars_per_second + buffer_time
    clamped = min(float(max_duration), max(float(min_duration), base))
    return _round_half_up(clamped, 1)


def parse_reading_speed(speed: str | int | float) -> int:
    if isinstance(speed, bool):
        raise ConfigurationError(f"Invalid reading speed {speed!r}")
    if isinstance(speed, (int, float)):
        value = int(speed)
    else:
        key = str(speed).strip()
        if key.lower() in READING_SPEED_PRESETS:
            return READING_SPEED_PRESETS[key.lower()]
        try:
            value = int(key)
        except ValueError:
            raise ConfigurationError(
                f"Unknown reading speed {speed!r}. Available: {', '.join(READING_SPEED_PRESETS)} or a CPM number"
            ) from None
    if value <= 0:
        raise ConfigurationError(f"Reading speed must be positive, got {value}")
    return value
