"""Photo shorts timeline compiler."""

from .errors import ConfigurationError, MissingAssetError, RenderBackendError, SkippableFeatureWarning
from .timeline_schema import ClipInput, Configuration, Timeline
from .timeline_builder import build_timeline
from .ffmpeg_render import compile_timeline, render_video
from .preview import generate_preview
from .progress import RenderEvent
from .thumbnail import generate_thumbnail

__all__ = [
    "ClipInput",
    "Configuration",
    "ConfigurationError",
    "MissingAssetError",
    "RenderBackendError",
    "RenderEvent",
    "SkippableFeatureWarning",
    "Timeline",
    "build_timeline",
    "compile_timeline",
    "generate_preview",
    "generate_thumbnail",
    "render_video",
]
