"""Low-resolution preview renders for quick review before the full encode."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import ConfigurationError, ShortsEngineError
from .ffmpeg_render import compile_timeline, run_compiled
from .progress import ProgressSink, emit
from .timeline_builder import build_timeline
from .timeline_schema import ClipInput, Configuration

_logger = logging.getLogger(__name__)

PREVIEW_MAX_TRANSITION = 0.3
PREVIEW_ZOOM_FACTOR = 0.7


@dataclass(frozen=True)
class PreviewPreset:
    width: int
    height: int
    fps: int
    quality_profile: str
    seconds_per_clip: int


PREVIEW_PRESETS: dict[str, PreviewPreset] = {
    "fast": PreviewPreset(width=360, height=640, fps=15, quality_profile="preview_fast", seconds_per_clip=2),
    "balanced": PreviewPreset(width=540, height=960, fps=24, quality_profile="preview_balanced", seconds_per_clip=4),
    "quality": PreviewPreset(width=720, height=1280, fps=30, quality_profile="preview_quality", seconds_per_clip=6),
}


def get_preview_preset(quality: str) -> PreviewPreset:
    try:
        return PREVIEW_PRESETS[quality]
    except KeyError:
        raise ConfigurationError(
            f"Unknown preview quality {quality!r}. Available: {', '.join(PREVIEW_PRESETS)}"
        ) from None


def preview_output_path(output_path: str | Path) -> Path:
    path = Path(output_path)
    return path.with_name(f"{path.stem}_preview{path.suffix or '.mp4'}")


def preview_configuration(config: Configuration, quality: str = "fast") -> Configuration:
    """Derive the preview settings: smaller canvas, short transitions, gentler zoom, no audio."""
    preset = get_preview_preset(quality)
    audio = config.audio.model_copy(update={"path": None})
    subtitle = config.subtitle
    if subtitle.font_size is not None:
        scaled = max(1, int(subtitle.font_size * preset.width / config.width))
        subtitle = subtitle.model_copy(update={"font_size": scaled})
    return config.model_copy(
        update={
            "width": preset.width,
            "height": preset.height,
            "fps": preset.fps,
            "transition_duration": min(config.transition_duration, PREVIEW_MAX_TRANSITION),
            "zoom_intensity": config.zoom_intensity * PREVIEW_ZOOM_FACTOR,
            "quality_profile": preset.quality_profile,
            "output_path": str(preview_output_path(config.output_path)),
            "audio": audio,
            "subtitle": subtitle,
        }
    )


def estimate_preview_seconds(clip_count: int, quality: str = "fast") -> int:
    preset = PREVIEW_PRESETS.get(quality, PREVIEW_PRESETS["fast"])
    return max(0, clip_count) * preset.seconds_per_clip


def estimate_preview_time(clip_count: int, quality: str = "fast") -> str:
    seconds = estimate_preview_seconds(clip_count, quality)
    if seconds < 60:
        return f"~{seconds}s"
    return f"~{math.ceil(seconds / 60)}m"


def generate_preview(
    clip_inputs: Iterable[ClipInput | dict | str],
    config: Configuration | dict,
    quality: str = "fast",
    on_progress: ProgressSink | None = None,
    rng: random.Random | None = None,
    timeout_sec: float | None = None,
) -> Path:
    config = Configuration.coerce(config)
    preview_config = preview_configuration(config, quality)
    inputs = list(clip_inputs)
    _logger.info(
        "Rendering %s preview (%dx%d@%d), estimated %s",
        quality,
        preview_config.width,
        preview_config.height,
        preview_config.fps,
        estimate_preview_time(len(inputs), quality),
    )
    source = rng if rng is not None else random.Random(config.seed)
    emit(on_progress, "analyzing", f"Building {quality} preview")
    try:
        timeline = build_timeline(inputs, preview_config, rng=source)
        compiled = compile_timeline(timeline, preview_config, rng=source)
    except ShortsEngineError as exc:
        emit(on_progress, "error", str(exc))
        raise
    return run_compiled(compiled, on_progress=on_progress, timeout_sec=timeout_sec)
