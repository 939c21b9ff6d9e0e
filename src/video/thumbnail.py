from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Union

from .errors import ConfigurationError, MissingAssetError, RenderBackendError
from .utils import ensure_ffmpeg_exists, ensure_parent_dir, format_number, get_media_duration

_logger = logging.getLogger(__name__)

SeekPosition = Union[str, int, float]
SEEK_POSITIONS = ("start", "middle", "end")
END_OFFSET = 0.5


def calculate_seek_position(position: SeekPosition, duration: float) -> float:
    """Map ``start``/``middle``/``end`` or a number of seconds onto ``[0, duration]``."""
    if isinstance(position, (int, float)) and not isinstance(position, bool):
        return max(0.0, min(float(position), duration))
    if position == "start":
        return 0.0
    if position == "end":
        return max(0.0, duration - END_OFFSET)
    if position == "middle":
        return duration / 2
    raise ConfigurationError(f"Unknown thumbnail position {position!r}. Use one of {', '.join(SEEK_POSITIONS)} or seconds.")


def default_thumbnail_path(video_path: str | Path) -> Path:
    path = Path(video_path)
    return path.with_name(f"{path.stem}_thumb.jpg")


def build_thumbnail_command(
    ffmpeg_exe: str,
    video_path: str | Path,
    output_path: str | Path,
    seek: float,
    width: int = 1080,
    height: int = 1920,
    quality: int = 2,
) -> list[str]:
    return [
        ffmpeg_exe,
        "-y",
        "-ss",
        format_number(seek, 3),
        "-i",
        str(video_path),
        "-frames:v",
        "1",
        "-vf",
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:black",
        "-q:v",
        str(quality),
        str(output_path),
    ]


def generate_thumbnail(
    video_path: str | Path,
    output_path: str | Path | None = None,
    position: SeekPosition = "middle",
    width: int = 1080,
    height: int = 1920,
    quality: int = 2,
    timeout_sec: float | None = 60,
) -> Path:
    """Extract one JPEG frame from a rendered video."""
    source = Path(video_path)
    if not source.exists():
        raise MissingAssetError(f"Video not found: {video_path}")
    if not 1 <= quality <= 31:
        raise ConfigurationError("JPEG quality must be between 1 and 31")
    target = ensure_parent_dir(output_path if output_path is not None else default_thumbnail_path(source))

    duration = get_media_duration(source)
    seek = calculate_seek_position(position, duration)
    cmd = build_thumbnail_command(ensure_ffmpeg_exists(), source, target, seek, width, height, quality)
    _logger.info("Extracting thumbnail from %s at %.2fs", source.name, seek)
    try:
        result = subprocess.run(cmd, check=False, capture_output=True, text=True, timeout=timeout_sec)
    except subprocess.TimeoutExpired as exc:
        raise RenderBackendError(f"Thumbnail extraction timed out after {timeout_sec}s", command=cmd) from exc
    if result.returncode != 0 or not target.exists():
        raise RenderBackendError(
            f"FFmpeg thumbnail extraction failed with code {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr or "",
            command=cmd,
        )
    return target
