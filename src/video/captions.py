"""Caption line wrapping, font sizing and drawtext animation expressions.

Captions are Korean marketing copy. Particles (조사) attach to the preceding
word, so a line must never start with a particle that could have stayed on the
previous line.
"""

from __future__ import annotations

import math
import re
from typing import Literal

from .errors import ConfigurationError
from .utils import format_number

WrapStrategy = Literal["greedy", "balanced", "particle", "meaningful"]
WRAP_STRATEGIES: tuple[str, ...] = ("greedy", "balanced", "particle", "meaningful")

# Longest first: matching stops at the first hit.
KOREAN_PARTICLES: tuple[str, ...] = (
    "에서는", "으로는", "에서도", "으로도", "까지는", "부터는",
    "에서", "으로", "까지", "부터", "에게", "한테", "처럼", "같이", "보다", "마다",
    "은", "는", "이", "가", "을", "를", "의", "에", "로", "와", "과", "도", "만", "나", "고",
)

_PUNCTUATION_RE = re.compile(r"([,.，．!?！？])\s*")


def _words(text: str) -> list[str]:
    return [word for word in re.split(r"\s+", text) if word]


def is_particle(word: str | None) -> bool:
    # Prefix match, so a content word such as "이번" also counts.
    if not word:
        return False
    return any(word == particle or word.startswith(particle) for particle in KOREAN_PARTICLES)


def split_long_word(word: str, max_length: int) -> list[str]:
    return [word[i:i + max_length] for i in range(0, len(word), max_length)]


def split_by_character(text: str, max_length: int) -> str:
    lines: list[str] = []
    current = ""
    for char in text:
        if len(current) >= max_length:
            lines.append(current)
            current = char
        else:
            current += char
    if current:
        lines.append(current)
    return "\n".join(lines)


def greedy_wrap(words: list[str], max_length: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in words:
        if len(word) > max_length:
            if current:
                lines.append(current)
                current = ""
            lines.extend(split_long_word(word, max_length))
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_length:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def balance_two_lines(text: str, max_length: int) -> str | None:
    words = _words(text)
    if len(words) < 2:
        return None

    best_split: str | None = None
    best_diff = math.inf
    for idx in range(1, len(words)):
        first = " ".join(words[:idx])
        second = " ".join(words[idx:])
        if len(first) <= max_length and len(second) <= max_length:
            diff = abs(len(first) - len(second))
            if diff < best_diff:
                best_diff = diff
                best_split = f"{first}\n{second}"
    return best_split


def prevent_particle_separation(text: str | None, max_length: int) -> str | None:
    if not text or len(text) <= max_length:
        return text
    words = _words(text)
    if not words:
        return text

    lines: list[str] = []
    current = ""
    idx = 0
    while idx < len(words):
        word = words[idx]
        next_word = words[idx + 1] if idx + 1 < len(words) else None
        candidate = f"{current} {word}" if current else word

        if len(candidate) <= max_length:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word

        if next_word and is_particle(next_word) and len(current) + 1 + len(next_word) <= max_length:
            current = f"{current} {next_word}"
            idx += 1
        idx += 1

    if current:
        lines.append(current)
    return "\n".join(lines)


def format_subtitle(
    text: str | None,
    max_length: int = 15,
    balance_lines: bool = True,
    prevent_particle_split: bool = False,
) -> str:
    if not text or len(text) <= max_length:
        return text or ""
    if prevent_particle_split:
        return prevent_particle_separation(text, max_length) or ""

    words = _words(text)
    if not words:
        return split_by_character(text, max_length)

    lines = greedy_wrap(words, max_length)
    if balance_lines and len(lines) == 2:
        balanced = balance_two_lines(text, max_length)
        if balanced:
            return balanced
    return "\n".join(lines)


def split_at_meaningful_boundary(text: str | None, max_length: int, max_lines: int = 3) -> str | None:
    if not text or len(text) <= max_length:
        return text

    segments: list[str] = []
    last_index = 0
    for match in _PUNCTUATION_RE.finditer(text):
        segment = text[last_index:match.start() + len(match.group(1))].strip()
        if segment:
            segments.append(segment)
        last_index = match.end()
    remaining = text[last_index:].strip()
    if remaining:
        segments.append(remaining)

    if len(segments) <= 1:
        return format_subtitle(text, max_length, prevent_particle_split=True)

    lines: list[str] = []
    current = ""
    for segment in segments:
        candidate = f"{current} {segment}" if current else segment
        if len(candidate) <= max_length:
            current = candidate
        else:
            if current:
                lines.append(current)
            if len(segment) > max_length:
                sub_lines = format_subtitle(segment, max_length, prevent_particle_split=True).split("\n")
                lines.extend(sub_lines[: max(0, max_lines - len(lines))])
                current = ""
            else:
                current = segment
        if len(lines) >= max_lines:
            break

    if current and len(lines) < max_lines:
        lines.append(current)
    return "\n".join(lines[:max_lines])


def wrap_caption(text: str | None, strategy: str, max_length: int, max_lines: int = 3) -> str:
    if strategy == "greedy":
        return format_subtitle(text, max_length, balance_lines=False)
    if strategy == "balanced":
        return format_subtitle(text, max_length, balance_lines=True)
    if strategy == "particle":
        return format_subtitle(text, max_length, prevent_particle_split=True)
    if strategy == "meaningful":
        return split_at_meaningful_boundary(text, max_length, max_lines=max_lines) or ""
    raise ConfigurationError(f"Unknown wrap strategy {strategy!r}. Available: {', '.join(WRAP_STRATEGIES)}")


def calculate_dynamic_font_size(
    text: str | None,
    base_size: int = 60,
    min_size: int = 40,
    threshold_length: int = 15,
) -> int:
    if not text:
        return base_size
    length = len(text)
    if length <= threshold_length:
        return base_size
    reduction = math.floor((length - threshold_length) * 0.5)
    return max(base_size - reduction, min_size)


# ---------------------------------------------------------------------------
# Animations
# ---------------------------------------------------------------------------

CaptionAnimation = Literal["none", "fadeIn", "fadeInOut", "slideUp", "typing"]
CAPTION_ANIMATIONS: tuple[str, ...] = ("none", "fadeIn", "fadeInOut", "slideUp", "typing")


def fade_in_alpha(clip_start: float, fade_duration: float = 0.4) -> str:
    start = format_number(clip_start)
    fade = format_number(fade_duration)
    return f"if(lt(t-{start},{fade}),max(t-{start},0)/{fade},1)"


def fade_in_out_alpha(clip_start: float, clip_duration: float, fade_duration: float = 0.4) -> str:
    start = format_number(clip_start)
    fade = format_number(fade_duration)
    fade_end = format_number(clip_start + fade_duration)
    end = format_number(clip_start + clip_duration)
    fade_out_start = format_number(clip_start + clip_duration - fade_duration)
    return (
        f"if(lt(t,{start}),0,"
        f"if(lt(t,{fade_end}),(t-{start})/{fade},"
        f"if(lt(t,{fade_out_start}),1,"
        f"if(lt(t,{end}),({end}-t)/{fade},0))))"
    )


def slide_up_y(base_y: str, clip_start: float, slide_duration: float = 0.4, distance: int = 50) -> str:
    start = format_number(clip_start)
    slide = format_number(slide_duration)
    return f"{base_y}+if(lt(t-{start},{slide}),{distance}*(1-max(t-{start},0)/{slide}),0)"


def caption_animation_params(
    animation: str,
    clip_start: float,
    clip_duration: float,
    fade_duration: float = 0.4,
    base_y: str | None = None,
) -> dict[str, str]:
    """Return drawtext ``alpha``/``y`` overrides for an animation."""
    if animation in {"fadeIn", "typing"}:
        return {"alpha": fade_in_alpha(clip_start, fade_duration)}
    if animation == "fadeInOut":
        return {"alpha": fade_in_out_alpha(clip_start, clip_duration, fade_duration)}
    if animation == "slideUp":
        if base_y is None:
            raise ConfigurationError("slideUp animation requires a base y position")
        return {
            "alpha": fade_in_alpha(clip_start, fade_duration),
            "y": slide_up_y(base_y, clip_start, fade_duration),
        }
    if animation == "none":
        return {}
    raise ConfigurationError(f"Unknown caption animation {animation!r}. Available: {', '.join(CAPTION_ANIMATIONS)}")
