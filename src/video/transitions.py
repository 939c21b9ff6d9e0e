"""Clip offsets on the shared timeline and per-boundary transition effects."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Sequence

from .errors import ConfigurationError

_logger = logging.getLogger(__name__)

# User-facing effect names and the xfade effect each one renders with.
TRANSITION_ALIASES: dict[str, str] = {
    "fade": "fade",
    "crossfade": "fade",
    "directionalwipe": "wipeleft",
    "slideright": "slideright",
    "slideleft": "slideleft",
    "slideup": "slideup",
    "slidedown": "slidedown",
    "radial": "radial",
    "circleopen": "circleopen",
    "directional": "wiperight",
}
TRANSITIONS: tuple[str, ...] = tuple(TRANSITION_ALIASES)

_XFADE_EFFECTS = {
    "fade", "fadeblack", "fadewhite", "dissolve", "distance", "pixelize", "radial",
    "wipeleft", "wiperight", "wipeup", "wipedown",
    "slideleft", "slideright", "slideup", "slidedown",
    "smoothleft", "smoothright", "smoothup", "smoothdown",
    "circleopen", "circleclose", "circlecrop", "rectcrop",
}

TRANSITION_MODES: dict[str, str] = {
    "single": "Use the configured effect at every boundary",
    "sequential": "Cycle through the transition palette",
    "random": "Pick an effect from the palette at each boundary",
}
TRANSITION_MODE_NAMES: tuple[str, ...] = tuple(TRANSITION_MODES)

DEFAULT_TRANSITION = "fade"


def normalize_xfade_transition(name: str | None) -> str:
    transition = str(name or DEFAULT_TRANSITION).strip().lower()
    if transition in TRANSITION_ALIASES:
        return TRANSITION_ALIASES[transition]
    if transition in _XFADE_EFFECTS:
        return transition
    _logger.warning("Unknown transition %r; falling back to %s", name, DEFAULT_TRANSITION)
    return DEFAULT_TRANSITION


def safe_transition_duration(durations: Sequence[float], requested: float, fps: int) -> float:
    """Clamp the transition so no two adjacent clips overlap by more than their length."""
    if len(durations) < 2:
        return 0.0
    if not math.isfinite(requested) or requested <= 0:
        raise ConfigurationError(f"transition_duration must be a positive number, got {requested!r}")
    min_frame = 1.0 / max(1, fps)
    shortest = min(min(durations[i], durations[i + 1]) for i in range(len(durations) - 1))
    limit = max(min_frame, shortest - min_frame)
    if requested >= shortest:
        _logger.warning(
            "Transition %.3fs does not fit the shortest adjacent clip (%.3fs); clamping to %.3fs",
            requested,
            shortest,
            limit,
        )
        return limit
    return requested


@dataclass(frozen=True)
class Boundary:
    index: int
    offset: float
    duration: float
    effect: str


@dataclass(frozen=True)
class TransitionSchedule:
    offsets: tuple[float, ...]
    boundaries: tuple[Boundary, ...]
    transition_duration: float
    total_duration: float

    @property
    def is_single_clip(self) -> bool:
        return not self.boundaries


def select_effects(
    boundary_count: int,
    mode: str,
    transition: str = DEFAULT_TRANSITION,
    rng: random.Random | None = None,
) -> list[str]:
    if mode == "single":
        effect = normalize_xfade_transition(transition)
        return [effect] * boundary_count
    if mode == "sequential":
        return [TRANSITION_ALIASES[TRANSITIONS[i % len(TRANSITIONS)]] for i in range(boundary_count)]
    if mode == "random":
        source = rng if rng is not None else random.Random()
        return [TRANSITION_ALIASES[source.choice(TRANSITIONS)] for _ in range(boundary_count)]
    raise ConfigurationError(f"Unknown transition mode {mode!r}. Available: {', '.join(TRANSITION_MODE_NAMES)}")


def schedule_transitions(
    durations: Sequence[float],
    transition_duration: float,
    mode: str = "single",
    transition: str = DEFAULT_TRANSITION,
    fps: int = 30,
    rng: random.Random | None = None,
) -> TransitionSchedule:
    """Compute clip start offsets where each transition overlaps the previous clip's tail.

    ``offsets[0]`` is always 0. For ``i >= 1`` the offset is the running length of
    the chain so far minus the transition, which is the ``offset`` xfade expects.
    """
    if not durations:
        raise ConfigurationError("Timeline has no clips to schedule.")
    if len(durations) == 1:
        return TransitionSchedule(
            offsets=(0.0,),
            boundaries=(),
            transition_duration=0.0,
            total_duration=float(durations[0]),
        )

    tau = safe_transition_duration(durations, transition_duration, fps)
    effects = select_effects(len(durations) - 1, mode, transition=transition, rng=rng)

    offsets = [0.0]
    boundaries: list[Boundary] = []
    cumulative = float(durations[0])
    for idx in range(1, len(durations)):
        offset = cumulative - tau
        offsets.append(offset)
        boundaries.append(Boundary(index=idx, offset=offset, duration=tau, effect=effects[idx - 1]))
        cumulative = cumulative + float(durations[idx]) - tau

    return TransitionSchedule(
        offsets=tuple(offsets),
        boundaries=tuple(boundaries),
        transition_duration=tau,
        total_duration=cumulative,
    )
