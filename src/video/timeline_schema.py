from __future__ import annotations

from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .captions import CaptionAnimation, WrapStrategy
from .durations import parse_reading_speed
from .errors import ConfigurationError
from .motion import KenBurnsMode, MotionProfile
from .templates import BPM_PRESETS, INTRO_OUTRO_PRESETS, QUALITY_PROFILES, SUBTITLE_POSITIONS, SUBTITLE_STYLES

TransitionMode = Literal["single", "sequential", "random"]
DurationSource = Literal["fixed", "reading", "random", "photo", "beat"]


class ReadingSettings(BaseModel):
    dynamic_duration: bool = False
    reading_speed: Union[int, str] = Field("normal", validate_default=True)
    min_duration: float = Field(2.0, gt=0)
    max_duration: float = Field(6.0, gt=0)
    buffer_time: float = Field(0.5, ge=0)

    @field_validator("reading_speed")
    @classmethod
    def validate_reading_speed(cls, value: Union[int, str]) -> int:
        return parse_reading_speed(value)

    @model_validator(mode="after")
    def validate_bounds(self) -> "ReadingSettings":
        if self.max_duration < self.min_duration:
            raise ValueError("reading.max_duration must be >= reading.min_duration")
        return self


class RandomDurationSettings(BaseModel):
    enabled: bool = False
    min_duration: int = Field(5, gt=0)
    max_duration: int = Field(10, gt=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "RandomDurationSettings":
        if self.max_duration < self.min_duration:
            raise ValueError("random_duration.max_duration must be >= random_duration.min_duration")
        return self


class SubtitleSettings(BaseModel):
    enabled: bool = True
    font_path: Optional[str] = None
    font_size: Optional[int] = Field(None, gt=0)
    min_font_size: int = Field(40, gt=0)
    font_threshold_length: int = Field(15, gt=0)
    text_color: str = "#FFFFFF"
    border_color: str = "black"
    max_chars_per_line: int = Field(15, gt=0)
    max_lines: int = Field(3, gt=0)
    wrap_strategy: WrapStrategy = "meaningful"
    animation: CaptionAnimation = "fadeIn"
    fade_duration: float = Field(0.4, gt=0)


class BeatSyncSettings(BaseModel):
    enabled: bool = False
    bpm: Union[float, str] = Field("medium", validate_default=True)
    beats_per_clip: Optional[int] = Field(None, gt=0)
    align_transitions: bool = True

    @field_validator("bpm")
    @classmethod
    def validate_bpm(cls, value: Union[float, str]) -> Union[float, str]:
        if isinstance(value, str) and value not in BPM_PRESETS:
            try:
                number = float(value)
            except ValueError:
                raise ValueError(f"unknown BPM preset {value!r}; available: {', '.join(BPM_PRESETS)}") from None
            if number <= 0:
                raise ValueError("bpm must be positive")
        elif not isinstance(value, str) and value <= 0:
            raise ValueError("bpm must be positive")
        return value


class Branding(BaseModel):
    enabled: bool = False
    logo_path: Optional[str] = None
    position_x: float = Field(0.5, ge=0, le=1)
    position_y: float = Field(0.05, ge=0, le=1)
    size: float = Field(0.25, gt=0, le=1)


class IntroSlide(BaseModel):
    enabled: bool = False
    text: str = ""
    preset: str = "simple"

    @field_validator("preset")
    @classmethod
    def validate_preset(cls, value: str) -> str:
        if value not in INTRO_OUTRO_PRESETS:
            raise ValueError(f"unknown intro/outro preset {value!r}; available: {', '.join(INTRO_OUTRO_PRESETS)}")
        return value


class OutroSlide(IntroSlide):
    preset: str = "cta"
    sub_text: Optional[str] = None


class AudioTrack(BaseModel):
    path: Optional[str] = None
    mix_volume: float = Field(0.3, ge=0, le=2)
    loop: bool = True
    fade_in: float = Field(0.5, ge=0)
    loudnorm: bool = True
    target_i: float = -16
    true_peak: float = -1.5
    lra: float = 11


class Configuration(BaseModel):
    """Every option the compiler reads, validated once at the boundary."""

    width: int = Field(1080, gt=0)
    height: int = Field(1920, gt=0)
    fps: int = Field(30, gt=0)
    photo_duration: float = Field(3.0, gt=0)
    transition: str = "fade"
    transition_duration: float = Field(0.5, gt=0)
    transition_mode: TransitionMode = "single"
    ken_burns: bool = True
    zoom_intensity: float = Field(0.15, ge=0, le=1)
    ken_burns_mode: KenBurnsMode = "sequential"
    ken_burns_easing: bool = True
    subtitle_position: str = "bottom"
    subtitle_style_name: str = "default"
    subtitle: SubtitleSettings = Field(default_factory=SubtitleSettings)
    reading: ReadingSettings = Field(default_factory=ReadingSettings)
    random_duration: RandomDurationSettings = Field(default_factory=RandomDurationSettings)
    beat_sync: BeatSyncSettings = Field(default_factory=BeatSyncSettings)
    branding: Branding = Field(default_factory=Branding)
    intro: IntroSlide = Field(default_factory=IntroSlide)
    outro: OutroSlide = Field(default_factory=OutroSlide)
    audio: AudioTrack = Field(default_factory=AudioTrack)
    quality_profile: str = "standard"
    output_path: str = "output/shorts.mp4"
    seed: Optional[int] = None

    @field_validator("subtitle_position")
    @classmethod
    def validate_subtitle_position(cls, value: str) -> str:
        if value not in SUBTITLE_POSITIONS:
            raise ValueError(f"subtitle_position must be one of {', '.join(SUBTITLE_POSITIONS)}")
        return value

    @field_validator("subtitle_style_name")
    @classmethod
    def validate_subtitle_style(cls, value: str) -> str:
        if value not in SUBTITLE_STYLES:
            raise ValueError(f"unknown subtitle style {value!r}; available: {', '.join(SUBTITLE_STYLES)}")
        return value

    @field_validator("quality_profile")
    @classmethod
    def validate_quality_profile(cls, value: str) -> str:
        if value not in QUALITY_PROFILES:
            raise ValueError(f"unknown quality profile {value!r}; available: {', '.join(QUALITY_PROFILES)}")
        return value

    @field_validator("width", "height")
    @classmethod
    def validate_even(cls, value: int) -> int:
        if value % 2:
            raise ValueError("width and height must be even for yuv420p output")
        return value

    @classmethod
    def from_options(cls, options: dict[str, Any] | None = None, **overrides: Any) -> "Configuration":
        data = dict(options or {})
        data.update(overrides)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    @classmethod
    def coerce(cls, value: "Configuration | dict[str, Any] | None") -> "Configuration":
        """Accept a built configuration or raw options; raw options fail with ``ConfigurationError``."""
        if isinstance(value, cls):
            return value
        return cls.from_options(value)


class ClipInput(BaseModel):
    source_image_path: str
    caption_text: Optional[str] = None
    fixed_duration: Optional[float] = Field(None, gt=0)


class BeatSyncInfo(BaseModel):
    bpm: float
    beat_interval: float
    beats: int
    original_duration: float


class Clip(BaseModel):
    index: int
    source_image_path: str
    caption_text: Optional[str] = None
    display_duration: float = Field(gt=0)
    duration_source: DurationSource = "photo"
    motion: Optional[MotionProfile] = None
    beat_sync: Optional[BeatSyncInfo] = None


class Timeline(BaseModel):
    clips: List[Clip]
    transition: str = "fade"
    transition_duration: float = Field(0.5, gt=0)
    transition_mode: TransitionMode = "single"
    intro: IntroSlide = Field(default_factory=IntroSlide)
    outro: OutroSlide = Field(default_factory=OutroSlide)
    audio: AudioTrack = Field(default_factory=AudioTrack)
    branding: Branding = Field(default_factory=Branding)

    @property
    def total_duration(self) -> float:
        """Nominal length of the clip chain with overlapping transitions."""
        if not self.clips:
            return 0.0
        total = sum(clip.display_duration for clip in self.clips)
        return total - (len(self.clips) - 1) * self.transition_duration
