"""Named presets: video templates, subtitle styles/positions and encode profiles."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from .errors import ConfigurationError


TEMPLATES: dict[str, dict[str, Any]] = {
    "classic": {
        "description": "Balanced slideshow with alternating center zooms",
        "photo_duration": 3,
        "transition": "fade",
        "transition_duration": 0.5,
        "ken_burns": True,
        "zoom_intensity": 0.15,
        "ken_burns_mode": "classic",
        "subtitle_position": "bottom",
        "subtitle_style_name": "default",
    },
    "dynamic": {
        "description": "Fast transitions, strong zoom, all motion patterns",
        "photo_duration": 2,
        "transition": "slideright",
        "transition_duration": 0.3,
        "ken_burns": True,
        "zoom_intensity": 0.2,
        "ken_burns_mode": "sequential",
        "subtitle_position": "bottom",
        "subtitle_style_name": "bold",
    },
    "elegant": {
        "description": "Slow transitions and soft zoom",
        "photo_duration": 4,
        "transition": "crossfade",
        "transition_duration": 1.0,
        "ken_burns": True,
        "zoom_intensity": 0.1,
        "ken_burns_mode": "classic",
        "subtitle_position": "bottom",
        "subtitle_style_name": "elegant",
    },
    "minimal": {
        "description": "No motion, clean fades",
        "photo_duration": 3,
        "transition": "fade",
        "transition_duration": 0.5,
        "ken_burns": False,
        "zoom_intensity": 0,
        "ken_burns_mode": "sequential",
        "subtitle_position": "bottom",
        "subtitle_style_name": "minimal",
    },
    "wheelRestoration": {
        "description": "Restoration work close-ups from varied angles",
        "photo_duration": 3,
        "transition": "directionalwipe",
        "transition_duration": 0.5,
        "ken_burns": True,
        "zoom_intensity": 0.15,
        "ken_burns_mode": "sequential",
        "subtitle_position": "bottom",
        "subtitle_style_name": "default",
    },
    "beforeAfter": {
        "description": "Before/after comparison",
        "photo_duration": 4,
        "transition": "wipeleft",
        "transition_duration": 0.8,
        "ken_burns": True,
        "zoom_intensity": 0.12,
        "ken_burns_mode": "classic",
        "subtitle_position": "center",
        "subtitle_style_name": "contrast",
    },
    "quick": {
        "description": "Short and fast cuts",
        "photo_duration": 1.5,
        "transition": "slideleft",
        "transition_duration": 0.2,
        "ken_burns": True,
        "zoom_intensity": 0.18,
        "ken_burns_mode": "random",
        "subtitle_position": "bottom",
        "subtitle_style_name": "bold",
    },
    "cinematic": {
        "description": "Slow cinematic panning",
        "photo_duration": 5,
        "transition": "fade",
        "transition_duration": 1.5,
        "ken_burns": True,
        "zoom_intensity": 0.08,
        "ken_burns_mode": "sequential",
        "subtitle_position": "bottom",
        "subtitle_style_name": "cinematic",
    },
}

# Safe-zone y expressions for drawtext; keeps captions clear of the platform UI.
SUBTITLE_POSITIONS: dict[str, str] = {
    "top": "h/8",
    "center": "(h-text_h)/2",
    "bottom": "h-h/6",
}


@dataclass(frozen=True)
class SubtitleStyle:
    font_size: int
    border_width: int
    background_color: str | None = None
    background_padding: int = 0
    shadow: bool = False
    shadow_x: int = 4
    shadow_y: int = 4
    shadow_color: str = "0x000000AA"


SUBTITLE_STYLES: dict[str, SubtitleStyle] = {
    "default": SubtitleStyle(font_size=60, border_width=3),
    "bold": SubtitleStyle(font_size=70, border_width=4),
    "minimal": SubtitleStyle(font_size=50, border_width=2),
    "elegant": SubtitleStyle(font_size=55, border_width=2),
    "cinematic": SubtitleStyle(font_size=65, border_width=3, shadow=True, shadow_x=3, shadow_y=3),
    "contrast": SubtitleStyle(font_size=65, border_width=4),
    "boxed": SubtitleStyle(
        font_size=60, border_width=2, background_color="0x00000099", background_padding=15
    ),
    "shadow": SubtitleStyle(font_size=60, border_width=2, shadow=True, shadow_color="0x00000080"),
    "boxedShadow": SubtitleStyle(
        font_size=60,
        border_width=2,
        background_color="0x00000080",
        background_padding=12,
        shadow=True,
        shadow_x=2,
        shadow_y=2,
        shadow_color="0x00000060",
    ),
}


@dataclass(frozen=True)
class QualityProfile:
    codec: str
    preset: str
    crf: int
    max_bitrate: str
    buffer_size: str
    audio_bitrate: str = "192k"


QUALITY_PROFILES: dict[str, QualityProfile] = {
    "draft": QualityProfile(codec="libx264", preset="ultrafast", crf=30, max_bitrate="3M", buffer_size="6M"),
    "standard": QualityProfile(codec="libx264", preset="veryfast", crf=24, max_bitrate="6M", buffer_size="12M"),
    "high": QualityProfile(codec="libx264", preset="slow", crf=18, max_bitrate="12M", buffer_size="24M"),
    "preview_fast": QualityProfile(codec="libx264", preset="ultrafast", crf=35, max_bitrate="1M", buffer_size="2M"),
    "preview_balanced": QualityProfile(
        codec="libx264", preset="veryfast", crf=30, max_bitrate="2M", buffer_size="4M"
    ),
    "preview_quality": QualityProfile(codec="libx264", preset="fast", crf=28, max_bitrate="4M", buffer_size="8M"),
}


def get_template_names() -> list[str]:
    return list(TEMPLATES)


def get_subtitle_style(name: str) -> SubtitleStyle:
    try:
        return SUBTITLE_STYLES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown subtitle style {name!r}. Available: {', '.join(SUBTITLE_STYLES)}"
        ) from None


def get_quality_profile(name: str) -> QualityProfile:
    try:
        return QUALITY_PROFILES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown quality profile {name!r}. Available: {', '.join(QUALITY_PROFILES)}"
        ) from None


def apply_template(options: dict[str, Any], template_name: str) -> dict[str, Any]:
    """Return a copy of ``options`` with the template's settings taking precedence."""
    template = TEMPLATES.get(template_name)
    if template is None:
        raise ConfigurationError(
            f"Unknown template {template_name!r}. Available: {', '.join(get_template_names())}"
        )
    merged = copy.deepcopy(options)
    for key, value in template.items():
        if key == "description":
            continue
        merged[key] = value
    return merged


@dataclass(frozen=True)
class SlidePreset:
    description: str
    duration: float
    background_color: str
    text_color: str
    font_size: int
    sub_text: str = ""


INTRO_OUTRO_PRESETS: dict[str, SlidePreset] = {
    "simple": SlidePreset("Clean text slide", 2.0, "0x000000", "0xFFFFFF", 80),
    "brand": SlidePreset("Brand name emphasis", 3.0, "0x1a1a2e", "0xedf2f4", 90),
    "minimal": SlidePreset("Short and light", 1.5, "0xffffff", "0x000000", 70),
    "cta": SlidePreset(
        "Call to action outro",
        3.0,
        "0x2d3436",
        "0xfdcb6e",
        60,
        sub_text="구독과 좋아요 부탁드립니다!",
    ),
}

BPM_PRESETS: dict[str, int] = {
    "slow": 80,
    "medium": 110,
    "upbeat": 128,
    "fast": 150,
}
