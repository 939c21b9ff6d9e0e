from __future__ import annotations

import logging
import math
import random
from pathlib import Path
from typing import Iterable, Union

from .beat_sync import align_transition_to_beat, apply_beat_sync, resolve_bpm
from .durations import calculate_duration, parse_reading_speed
from .errors import ConfigurationError, MissingAssetError
from .motion import build_motion_profile, static_profile
from .timeline_schema import Clip, ClipInput, Configuration, DurationSource, Timeline

_logger = logging.getLogger(__name__)


def _normalize_clip_duration(duration: float, fps: int, index: int) -> float:
    min_duration = 1.0 / max(1, fps)
    if not math.isfinite(duration):
        raise ConfigurationError(f"Clip {index} has non-finite duration {duration!r}.")
    if duration <= 0:
        raise ConfigurationError(f"Clip {index} has invalid duration {duration}s (must be > 0).")
    return max(duration, min_duration)


def resolve_clip_duration(
    clip: ClipInput,
    config: Configuration,
    rng: random.Random,
) -> tuple[float, DurationSource]:
    """Pick one clip's display duration and record which rule produced it."""
    if clip.fixed_duration is not None:
        return float(clip.fixed_duration), "fixed"
    reading = config.reading
    if reading.dynamic_duration and clip.caption_text and clip.caption_text.strip():
        seconds = calculate_duration(
            clip.caption_text,
            reading_speed=parse_reading_speed(reading.reading_speed),
            min_duration=reading.min_duration,
            max_duration=reading.max_duration,
            buffer_time=reading.buffer_time,
        )
        return seconds, "reading"
    random_duration = config.random_duration
    if random_duration.enabled and not config.beat_sync.enabled:
        return float(rng.randint(random_duration.min_duration, random_duration.max_duration)), "random"
    return float(config.photo_duration), "photo"


def _coerce_clip_input(item: Union[ClipInput, dict, str]) -> ClipInput:
    if isinstance(item, ClipInput):
        return item
    if isinstance(item, (str, Path)):
        return ClipInput(source_image_path=str(item))
    return ClipInput.model_validate(item)


def build_timeline(
    clip_inputs: Iterable[Union[ClipInput, dict, str]],
    config: Configuration,
    rng: random.Random | None = None,
) -> Timeline:
    """Resolve durations, beat alignment and motion for every clip, in input order."""
    inputs = [_coerce_clip_input(item) for item in clip_inputs]
    if not inputs:
        raise ConfigurationError("At least one clip is required to build a timeline.")
    source = rng if rng is not None else random.Random(config.seed)

    clips: list[Clip] = []
    for index, clip_input in enumerate(inputs):
        image_path = Path(clip_input.source_image_path)
        if not image_path.exists():
            raise MissingAssetError(f"Clip image not found: {clip_input.source_image_path}")
        duration, duration_source = resolve_clip_duration(clip_input, config, source)
        duration = _normalize_clip_duration(duration, config.fps, index)
        if config.ken_burns and config.zoom_intensity > 0:
            motion = build_motion_profile(
                index,
                mode=config.ken_burns_mode,
                intensity=config.zoom_intensity,
                rng=source,
                eased=config.ken_burns_easing,
            )
        else:
            motion = static_profile()
        clips.append(
            Clip(
                index=index,
                source_image_path=str(image_path.resolve()),
                caption_text=clip_input.caption_text,
                display_duration=duration,
                duration_source=duration_source,
                motion=motion,
            )
        )

    transition_duration = config.transition_duration
    if config.beat_sync.enabled:
        bpm = resolve_bpm(config.beat_sync.bpm)
        clips = apply_beat_sync(clips, bpm, config.beat_sync.beats_per_clip)
        if config.beat_sync.align_transitions:
            transition_duration = align_transition_to_beat(transition_duration, bpm)

    _logger.info(
        "Built timeline with %d clips (%s)",
        len(clips),
        ", ".join(f"{clip.display_duration:g}s/{clip.duration_source}" for clip in clips),
    )
    return Timeline(
        clips=clips,
        transition=config.transition,
        transition_duration=transition_duration,
        transition_mode=config.transition_mode,
        intro=config.intro,
        outro=config.outro,
        audio=config.audio,
        branding=config.branding,
    )
