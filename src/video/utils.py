from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
import warnings
from pathlib import Path

from .errors import ConfigurationError, RenderBackendError, SkippableFeatureWarning

_logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RenderBackendError):
    pass


def _bundled_ffmpeg() -> str | None:
    try:
        import imageio_ffmpeg

        return imageio_ffmpeg.get_ffmpeg_exe()
    except (ImportError, RuntimeError):
        return None


def _find_executable(name: str, env_var: str) -> str | None:
    """Lookup order: the env override, then PATH, then the imageio-ffmpeg binary."""
    override = os.environ.get(env_var, "").strip()
    if override and Path(override).is_file():
        return override
    on_path = shutil.which(name)
    if on_path:
        return on_path
    bundled = _bundled_ffmpeg()
    if not bundled:
        return None
    if name == "ffmpeg":
        return bundled if Path(bundled).is_file() else None
    sibling = Path(bundled).with_name(name)
    return str(sibling) if sibling.is_file() else None


def resolve_ffmpeg_exe() -> str:
    exe = _find_executable("ffmpeg", "FFMPEG_PATH")
    if exe is None:
        raise FileNotFoundError("ffmpeg executable not found. Install ffmpeg, put it on PATH or set FFMPEG_PATH.")
    return exe


def resolve_ffprobe_exe() -> str:
    exe = _find_executable("ffprobe", "FFPROBE_PATH")
    if exe is None:
        raise FileNotFoundError("ffprobe executable not found. Install ffmpeg (includes ffprobe) or set FFPROBE_PATH.")
    return exe


def ensure_ffmpeg_exists() -> str:
    """Resolve ffmpeg and confirm it runs; the render backend calls this once per render."""
    try:
        ffmpeg_exe = resolve_ffmpeg_exe()
    except FileNotFoundError as exc:
        raise FFmpegNotFoundError(str(exc)) from exc
    result = subprocess.run([ffmpeg_exe, "-version"], check=False, capture_output=True, text=True)
    if result.returncode != 0:
        raise FFmpegNotFoundError(
            f"FFmpeg at {ffmpeg_exe} could not be executed.",
            returncode=result.returncode,
            stderr=result.stderr or "",
        )
    return ffmpeg_exe


def get_media_duration(path: str | Path) -> float:
    """Container duration in seconds via ffprobe; 0.0 when it cannot be determined."""
    media_path = Path(path).resolve()
    if not media_path.exists():
        return 0.0
    try:
        cmd = [resolve_ffprobe_exe(), "-v", "error", "-show_entries", "format=duration", "-of", "json", str(media_path)]
        result = subprocess.run(cmd, check=False, capture_output=True, text=True, timeout=30)
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        _logger.warning("Could not probe %s: %s", media_path.name, exc)
        return 0.0
    if result.returncode != 0:
        return 0.0
    try:
        return float(json.loads(result.stdout)["format"]["duration"])
    except (KeyError, TypeError, ValueError):
        return 0.0


def ensure_parent_dir(path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def format_number(value: float, places: int = 6) -> str:
    """Render a number for a filtergraph: fixed precision, no trailing zeros."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    text = f"{round(float(value), places):.{places}f}".rstrip("0").rstrip(".")
    if text in {"-0", ""}:
        return "0"
    return text


def escape_drawtext(text: str) -> str:
    """Escape caption text for a quoted drawtext ``text`` option (used with expansion=none)."""
    # A straight quote cannot survive both filtergraph and option quoting levels.
    return str(text).replace("\\", "\\\\").replace(":", "\\:").replace("'", "’")


def escape_filter_path(path: str | Path) -> str:
    text = str(path)
    # Quoted filter values have no escape for a straight quote.
    if "'" in text:
        raise ConfigurationError(f"Path cannot be used inside a filtergraph (contains a quote): {text}")
    return text.replace("\\", "/").replace(":", "\\:")


def hex_to_ffmpeg_color(color: str) -> str:
    if color.startswith("#"):
        return "0x" + color[1:] + "FF"
    return color


def warn_skipped(feature: str, reason: str, skipped: list[str] | None = None) -> str:
    message = f"{feature} skipped: {reason}"
    if skipped is not None:
        skipped.append(message)
    _logger.warning(message)
    warnings.warn(message, SkippableFeatureWarning, stacklevel=3)
    return message
