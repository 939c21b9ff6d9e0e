"""Ken Burns motion profiles.

A profile describes zoom and crop-window origin as functions of normalized clip
time ``t`` in ``[0, 1]``. ``x``/``y`` are fractions of the free pan range, i.e.
the window origin is ``x * (iw - iw/zoom)``, so ``0.5`` keeps the frame centered
at any zoom level.
"""

from __future__ import annotations

import logging
import random
from typing import Literal

from pydantic import BaseModel

from .errors import ConfigurationError
from .utils import format_number

_logger = logging.getLogger(__name__)

PATTERN_NAMES: tuple[str, ...] = (
    "zoom_in_center",
    "zoom_out_center",
    "pan_down_right",
    "pan_down_left",
    "pan_up_right",
    "pan_up_left",
    "pan_horizontal",
    "pan_vertical",
)
STATIC_PATTERN = "static"

KenBurnsMode = Literal["classic", "sequential", "random"]
KEN_BURNS_MODES: tuple[str, ...] = ("classic", "sequential", "random")

_PAN_LOW = 0.1
_PAN_HIGH = 0.9


def ease_in_out_cubic(t: float) -> float:
    t = min(1.0, max(0.0, t))
    if t < 0.5:
        return 4 * t * t * t
    return 1 - ((-2 * t + 2) ** 3) / 2


class MotionProfile(BaseModel):
    pattern: str
    zoom_start: float = 1.0
    zoom_end: float = 1.0
    x_start: float = 0.5
    x_end: float = 0.5
    y_start: float = 0.5
    y_end: float = 0.5
    eased: bool = True

    @property
    def is_static(self) -> bool:
        return self.pattern == STATIC_PATTERN

    def progress(self, t: float) -> float:
        t = min(1.0, max(0.0, float(t)))
        return ease_in_out_cubic(t) if self.eased else t

    def zoom(self, t: float) -> float:
        return self.zoom_start + (self.zoom_end - self.zoom_start) * self.progress(t)

    def x(self, t: float) -> float:
        return self.x_start + (self.x_end - self.x_start) * self.progress(t)

    def y(self, t: float) -> float:
        return self.y_start + (self.y_end - self.y_start) * self.progress(t)

    def zoompan_expressions(self, frames: int) -> dict[str, str]:
        """ffmpeg zoompan ``z``/``x``/``y`` expressions driven by the output frame number."""
        frames = max(1, int(frames))
        t_expr = f"min(on/{frames},1)"
        if self.eased:
            p = f"if(lt({t_expr},0.5),4*pow({t_expr},3),1-pow(-2*{t_expr}+2,3)/2)"
        else:
            p = t_expr

        def _lerp(start: float, end: float) -> str:
            if start == end:
                return format_number(start)
            return f"{format_number(start)}+({format_number(end - start)})*{p}"

        return {
            "z": _lerp(self.zoom_start, self.zoom_end),
            "x": f"({_lerp(self.x_start, self.x_end)})*(iw-iw/zoom)",
            "y": f"({_lerp(self.y_start, self.y_end)})*(ih-ih/zoom)",
        }


def static_profile() -> MotionProfile:
    return MotionProfile(pattern=STATIC_PATTERN, eased=False)


def pattern_profile(pattern: str, intensity: float, eased: bool = True) -> MotionProfile:
    if intensity <= 0:
        return static_profile()
    full = 1.0 + intensity
    half = 1.0 + intensity / 2
    lo, hi = _PAN_LOW, _PAN_HIGH
    if pattern == "zoom_in_center":
        return MotionProfile(pattern=pattern, zoom_start=1.0, zoom_end=full, eased=eased)
    if pattern == "zoom_out_center":
        return MotionProfile(pattern=pattern, zoom_start=full, zoom_end=1.0, eased=eased)
    diagonals = {
        "pan_down_right": (lo, hi, lo, hi),
        "pan_down_left": (hi, lo, lo, hi),
        "pan_up_right": (lo, hi, hi, lo),
        "pan_up_left": (hi, lo, hi, lo),
    }
    if pattern in diagonals:
        x_start, x_end, y_start, y_end = diagonals[pattern]
        return MotionProfile(
            pattern=pattern,
            zoom_start=half,
            zoom_end=full,
            x_start=x_start,
            x_end=x_end,
            y_start=y_start,
            y_end=y_end,
            eased=eased,
        )
    if pattern == "pan_horizontal":
        return MotionProfile(pattern=pattern, zoom_start=half, zoom_end=half, x_start=lo, x_end=hi, eased=eased)
    if pattern == "pan_vertical":
        return MotionProfile(pattern=pattern, zoom_start=half, zoom_end=half, y_start=lo, y_end=hi, eased=eased)
    raise ConfigurationError(f"Unknown motion pattern {pattern!r}. Available: {', '.join(PATTERN_NAMES)}")


def select_pattern(index: int, mode: str, rng: random.Random | None = None) -> str:
    if mode == "classic":
        return PATTERN_NAMES[0] if index % 2 == 0 else PATTERN_NAMES[1]
    if mode == "sequential":
        return PATTERN_NAMES[index % len(PATTERN_NAMES)]
    if mode == "random":
        source = rng if rng is not None else random.Random()
        return source.choice(PATTERN_NAMES)
    raise ConfigurationError(f"Unknown Ken Burns mode {mode!r}. Available: {', '.join(KEN_BURNS_MODES)}")


def build_motion_profile(
    index: int,
    mode: str = "sequential",
    intensity: float = 0.15,
    rng: random.Random | None = None,
    eased: bool = True,
) -> MotionProfile:
    if intensity <= 0:
        return static_profile()
    pattern = select_pattern(index, mode, rng=rng)
    _logger.debug("Clip %d motion pattern %s (mode=%s, intensity=%s)", index, pattern, mode, intensity)
    return pattern_profile(pattern, intensity, eased=eased)
