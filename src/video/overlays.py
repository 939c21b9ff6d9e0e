"""Intro/outro title slides and the logo overlay.

Each builder appends its nodes to a :class:`GraphBuilder` and returns the label
of its last node, or ``None`` when the feature is skipped. Skips are reported
with :class:`SkippableFeatureWarning` and never abort compilation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError, MissingAssetError
from .render_graph import GraphBuilder, ParamValue
from .templates import INTRO_OUTRO_PRESETS, SlidePreset
from .timeline_schema import Branding, IntroSlide, OutroSlide
from .utils import escape_drawtext, escape_filter_path, warn_skipped

_logger = logging.getLogger(__name__)

SLIDE_FADE_DURATION = 0.5
DEFAULT_FONT_FAMILY = "Sans"


@dataclass(frozen=True)
class SlideResult:
    label: str
    duration: float


def get_slide_preset(name: str) -> SlidePreset:
    try:
        return INTRO_OUTRO_PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown intro/outro preset {name!r}. Available: {', '.join(INTRO_OUTRO_PRESETS)}"
        ) from None


def drawtext_font_params(font_path: str | None) -> list[tuple[str, ParamValue]]:
    """``fontfile`` for a configured font, else a fontconfig family lookup."""
    if font_path is None:
        return [("font", DEFAULT_FONT_FAMILY)]
    path = Path(font_path)
    if not path.exists():
        raise MissingAssetError(f"Font file not found: {font_path}")
    return [("fontfile", escape_filter_path(path.resolve()))]


def _scaled(size: int, width: int) -> int:
    return max(1, int(math.floor(size * width / 1080)))


def _slide_nodes(
    builder: GraphBuilder,
    prefix: str,
    preset: SlidePreset,
    title: str,
    sub_text: str | None,
    width: int,
    height: int,
    fps: int,
    font: list[tuple[str, ParamValue]],
) -> SlideResult:
    duration = preset.duration
    title_size = _scaled(preset.font_size, width)
    source = builder.add(
        f"{prefix}_bg",
        "color",
        [("c", preset.background_color), ("s", f"{width}x{height}"), ("d", duration), ("r", fps)],
    )
    steps = [
        ("fmt", "format", [("pix_fmts", "yuv420p")]),
        ("sar", "setsar", [(None, 1)]),
        (
            "title",
            "drawtext",
            [
                *font,
                ("text", escape_drawtext(title)),
                ("expansion", "none"),
                ("fontsize", title_size),
                ("fontcolor", preset.text_color),
                ("x", "(w-text_w)/2"),
                ("y", "(h-text_h)/2-50" if sub_text else "(h-text_h)/2"),
            ],
        ),
    ]
    if sub_text:
        steps.append(
            (
                "sub",
                "drawtext",
                [
                    *font,
                    ("text", escape_drawtext(sub_text)),
                    ("expansion", "none"),
                    ("fontsize", max(1, title_size // 2)),
                    ("fontcolor", preset.text_color),
                    ("x", "(w-text_w)/2"),
                    ("y", "(h-text_h)/2+80"),
                ],
            )
        )
    fade = min(SLIDE_FADE_DURATION, duration / 2)
    steps.append(("fadein", "fade", [("t", "in"), ("st", 0), ("d", fade)]))
    steps.append(("fadeout", "fade", [("t", "out"), ("st", duration - fade), ("d", fade)]))
    label = builder.chain(source, prefix, steps)
    return SlideResult(label=label, duration=duration)


def add_intro(
    builder: GraphBuilder,
    intro: IntroSlide,
    width: int,
    height: int,
    fps: int,
    font_path: str | None = None,
    skipped: list[str] | None = None,
) -> SlideResult | None:
    if not intro.enabled:
        return None
    if not intro.text.strip():
        warn_skipped("intro", "enabled without text", skipped)
        return None
    preset = get_slide_preset(intro.preset)
    font = drawtext_font_params(font_path)
    _logger.info("Adding %s intro slide (%.1fs)", intro.preset, preset.duration)
    return _slide_nodes(builder, "intro", preset, intro.text, None, width, height, fps, font)


def add_outro(
    builder: GraphBuilder,
    outro: OutroSlide,
    width: int,
    height: int,
    fps: int,
    font_path: str | None = None,
    skipped: list[str] | None = None,
) -> SlideResult | None:
    if not outro.enabled:
        return None
    if not outro.text.strip():
        warn_skipped("outro", "enabled without text", skipped)
        return None
    preset = get_slide_preset(outro.preset)
    font = drawtext_font_params(font_path)
    sub_text = outro.sub_text if outro.sub_text is not None else preset.sub_text
    _logger.info("Adding %s outro slide (%.1fs)", outro.preset, preset.duration)
    return _slide_nodes(builder, "outro", preset, outro.text, sub_text or None, width, height, fps, font)


def logo_position(branding: Branding, width: int, height: int) -> tuple[int, int]:
    """Top-left corner that centers the scaled logo horizontally on ``position_x``."""
    x = width * branding.position_x - width * branding.size / 2
    y = height * branding.position_y
    return int(round(x)), int(round(y))


def add_logo_overlay(
    builder: GraphBuilder,
    main: str,
    branding: Branding,
    width: int,
    height: int,
    skipped: list[str] | None = None,
) -> str:
    """Overlay the logo once on ``main``; returns the label to continue from."""
    if not branding.enabled:
        return main
    if not branding.logo_path:
        warn_skipped("logo", "branding enabled without a logo path", skipped)
        return main
    logo_path = Path(branding.logo_path)
    if not logo_path.exists():
        warn_skipped("logo", f"file not found: {branding.logo_path}", skipped)
        return main

    index = builder.add_input(str(logo_path.resolve()))
    logo_width = max(2, int(round(width * branding.size)))
    scaled = builder.add("logo_scale", "scale", [("w", logo_width), ("h", -1)], inputs=(f"{index}:v",))
    x, y = logo_position(branding, width, height)
    _logger.info("Overlaying logo at (%d, %d), width %d", x, y, logo_width)
    return builder.add("logo_overlay", "overlay", [("x", x), ("y", y)], inputs=(main, scaled))
