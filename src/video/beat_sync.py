"""Quantize clip and transition durations to a musical beat grid."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .errors import ConfigurationError
from .templates import BPM_PRESETS
from .timeline_schema import BeatSyncInfo, Clip

_logger = logging.getLogger(__name__)

BPM_PRESET_NAMES: tuple[str, ...] = tuple(BPM_PRESETS)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def resolve_bpm(value: str | int | float) -> float:
    """Map a preset name or raw number to a BPM value."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid BPM {value!r}")
    if isinstance(value, (int, float)):
        bpm = float(value)
    else:
        key = str(value).strip()
        if key in BPM_PRESETS:
            return float(BPM_PRESETS[key])
        try:
            bpm = float(key)
        except ValueError:
            raise ConfigurationError(
                f"Unknown BPM preset {value!r}. Available: {', '.join(BPM_PRESET_NAMES)}"
            ) from None
    if not math.isfinite(bpm) or bpm <= 0:
        raise ConfigurationError(f"BPM must be a positive number, got {value!r}")
    return bpm


def get_beat_interval(bpm: float) -> float:
    return 60.0 / bpm


def align_duration_to_beat(duration: float, bpm: float, beats_per_clip: int | None = None) -> float:
    beat_interval = get_beat_interval(bpm)
    if beats_per_clip:
        return beats_per_clip * beat_interval
    rounded_beats = _round_half_up(duration / beat_interval / 4) * 4
    return max(4, rounded_beats) * beat_interval


def align_transition_to_beat(duration: float, bpm: float) -> float:
    beat_interval = get_beat_interval(bpm)
    beats = max(1, _round_half_up(duration / beat_interval))
    return beats * beat_interval


def apply_beat_sync(clips: Sequence[Clip], bpm: float, beats_per_clip: int | None = None) -> list[Clip]:
    beat_interval = get_beat_interval(bpm)
    synced: list[Clip] = []
    for clip in clips:
        original = clip.display_duration
        aligned = align_duration_to_beat(original, bpm, beats_per_clip)
        info = BeatSyncInfo(
            bpm=bpm,
            beat_interval=beat_interval,
            beats=_round_half_up(aligned / beat_interval),
            original_duration=original,
        )
        synced.append(clip.model_copy(update={"display_duration": aligned, "duration_source": "beat", "beat_sync": info}))
    _logger.info("Beat sync applied at %s BPM to %d clips", format(bpm, "g"), len(synced))
    return synced


def beat_sync_summary(clips: Sequence[Clip], transition_duration: float = 0.5) -> dict | None:
    if not clips or clips[0].beat_sync is None:
        return None
    bpm = clips[0].beat_sync.bpm
    beat_interval = get_beat_interval(bpm)
    total = sum(clip.display_duration for clip in clips) - (len(clips) - 1) * transition_duration
    return {
        "bpm": bpm,
        "beat_interval": round(beat_interval, 3),
        "total_duration": round(total, 2),
        "total_beats": _round_half_up(total / beat_interval),
        "clip_beats": [clip.beat_sync.beats if clip.beat_sync else None for clip in clips],
    }
