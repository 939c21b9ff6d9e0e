"""Compile a :class:`Timeline` into one ffmpeg invocation and run it.

Compilation is pure: the same timeline, configuration and seed always yield the
same filtergraph text. The only blocking step is the single backend run in
:func:`render_video`.
"""

from __future__ import annotations

import json
import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from .audio_mix import add_background_audio
from .captions import caption_animation_params, calculate_dynamic_font_size, wrap_caption
from .errors import ConfigurationError, MissingAssetError, RenderBackendError, ShortsEngineError
from .ffmpeg_runner import progress_fraction, run_ffmpeg_streaming
from .overlays import add_intro, add_logo_overlay, add_outro, drawtext_font_params
from .progress import ProgressSink, emit
from .render_graph import GraphBuilder, ParamValue, RenderGraph
from .templates import SUBTITLE_POSITIONS, QualityProfile, SubtitleStyle, get_quality_profile, get_subtitle_style
from .timeline_builder import build_timeline
from .timeline_schema import Clip, ClipInput, Configuration, Timeline
from .transitions import TransitionSchedule, schedule_transitions
from .utils import ensure_ffmpeg_exists, ensure_parent_dir, escape_drawtext, format_number, hex_to_ffmpeg_color

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackendInvocation:
    input_args: tuple[str, ...]
    filter_complex: str
    map_args: tuple[str, ...]
    encode_args: tuple[str, ...]
    output_path: str

    def to_command(self, ffmpeg_exe: str = "ffmpeg") -> list[str]:
        return [
            ffmpeg_exe,
            "-y",
            *self.input_args,
            "-filter_complex",
            self.filter_complex,
            *self.map_args,
            *self.encode_args,
            self.output_path,
        ]


@dataclass(frozen=True)
class CompiledRender:
    timeline: Timeline
    graph: RenderGraph
    schedule: TransitionSchedule
    invocation: BackendInvocation
    total_duration: float
    skipped_features: tuple[str, ...] = ()

    @property
    def has_audio(self) -> bool:
        return self.graph.audio_output is not None


def clip_frame_count(duration: float, fps: int) -> int:
    return max(1, int(math.ceil(duration * fps - 1e-9)))


def _scale(value: int, width: int) -> int:
    return max(1, int(math.floor(value * width / 1080)))


def _clip_input_options(clip: Clip, fps: int) -> list[str]:
    if clip.motion is not None and not clip.motion.is_static:
        # zoompan emits ``d`` frames per input frame, so feed exactly one.
        return ["-loop", "1", "-framerate", "1", "-t", "1"]
    return ["-loop", "1", "-framerate", str(fps), "-t", format_number(clip.display_duration)]


def _canvas_steps(clip: Clip, width: int, height: int, fps: int) -> list[tuple[str, str, list[tuple[str | None, ParamValue]]]]:
    motion = clip.motion
    if motion is None or motion.is_static:
        return [
            ("scale", "scale", [("w", width), ("h", height), ("force_original_aspect_ratio", "decrease")]),
            ("pad", "pad", [("w", width), ("h", height), ("x", "(ow-iw)/2"), ("y", "(oh-ih)/2"), ("color", "black")]),
            ("sar", "setsar", [(None, 1)]),
            ("fps", "fps", [(None, fps)]),
            ("fmt", "format", [("pix_fmts", "yuv420p")]),
        ]

    frames = clip_frame_count(clip.display_duration, fps)
    expressions = motion.zoompan_expressions(frames)
    # Oversample before zoompan so sub-pixel pan steps do not jitter.
    return [
        ("scale", "scale", [("w", width * 2), ("h", height * 2), ("force_original_aspect_ratio", "increase")]),
        ("crop", "crop", [("w", width * 2), ("h", height * 2)]),
        (
            "zoom",
            "zoompan",
            [
                ("z", expressions["z"]),
                ("x", expressions["x"]),
                ("y", expressions["y"]),
                ("d", frames),
                ("s", f"{width}x{height}"),
                ("fps", fps),
            ],
        ),
        ("sar", "setsar", [(None, 1)]),
        ("fmt", "format", [("pix_fmts", "yuv420p")]),
    ]


def caption_params(
    clip: Clip,
    config: Configuration,
    style: SubtitleStyle,
    font: list[tuple[str, ParamValue]],
) -> list[tuple[str, ParamValue]] | None:
    """drawtext parameters for a clip's caption, or ``None`` when it has none."""
    subtitle = config.subtitle
    text = (clip.caption_text or "").strip()
    if not subtitle.enabled or not text:
        return None
    width = config.width
    wrapped = wrap_caption(text, subtitle.wrap_strategy, subtitle.max_chars_per_line, subtitle.max_lines)
    base_size = subtitle.font_size or _scale(style.font_size, width)
    font_size = calculate_dynamic_font_size(
        text,
        base_size=base_size,
        min_size=min(base_size, _scale(subtitle.min_font_size, width)),
        threshold_length=subtitle.font_threshold_length,
    )
    y_expr = SUBTITLE_POSITIONS[config.subtitle_position]

    params: list[tuple[str, ParamValue]] = [
        *font,
        ("text", escape_drawtext(wrapped)),
        ("expansion", "none"),
        ("fontsize", font_size),
        ("fontcolor", hex_to_ffmpeg_color(subtitle.text_color)),
        ("borderw", _scale(style.border_width, width)),
        ("bordercolor", hex_to_ffmpeg_color(subtitle.border_color)),
        ("line_spacing", _scale(10, width)),
        ("x", "(w-text_w)/2"),
    ]
    animation = caption_animation_params(
        subtitle.animation,
        clip_start=0,
        clip_duration=clip.display_duration,
        fade_duration=subtitle.fade_duration,
        base_y=y_expr,
    )
    params.append(("y", animation.get("y", y_expr)))
    if style.background_color:
        params.extend(
            [
                ("box", 1),
                ("boxcolor", style.background_color),
                ("boxborderw", _scale(style.background_padding, width)),
            ]
        )
    if style.shadow:
        params.extend(
            [
                ("shadowx", _scale(style.shadow_x, width)),
                ("shadowy", _scale(style.shadow_y, width)),
                ("shadowcolor", style.shadow_color),
            ]
        )
    if "alpha" in animation:
        params.append(("alpha", animation["alpha"]))
    return params


def _add_clip(
    builder: GraphBuilder,
    clip: Clip,
    position: int,
    config: Configuration,
    style: SubtitleStyle,
    font: list[tuple[str, ParamValue]],
) -> str:
    index = builder.add_input(clip.source_image_path, _clip_input_options(clip, config.fps))
    steps = _canvas_steps(clip, config.width, config.height, config.fps)
    caption = caption_params(clip, config, style, font)
    if caption is not None:
        steps.append(("text", "drawtext", caption))
    return builder.chain(f"{index}:v", f"c{position}", steps)


def _add_transitions(builder: GraphBuilder, labels: list[str], schedule: TransitionSchedule) -> str:
    current = labels[0]
    for boundary in schedule.boundaries:
        current = builder.add(
            f"xf{boundary.index}",
            "xfade",
            [
                ("transition", boundary.effect),
                ("duration", boundary.duration),
                ("offset", boundary.offset),
            ],
            inputs=(current, labels[boundary.index]),
        )
    return current


def encode_args(profile: QualityProfile, fps: int, has_audio: bool) -> list[str]:
    args = [
        "-c:v",
        profile.codec,
        "-preset",
        profile.preset,
        "-crf",
        str(profile.crf),
        "-maxrate",
        profile.max_bitrate,
        "-bufsize",
        profile.buffer_size,
        "-pix_fmt",
        "yuv420p",
        "-r",
        str(fps),
    ]
    if has_audio:
        args.extend(["-c:a", "aac", "-b:a", profile.audio_bitrate])
    else:
        args.append("-an")
    args.extend(["-movflags", "+faststart"])
    return args


def _check_clip_assets(clips: Iterable[Clip]) -> None:
    for clip in clips:
        if not Path(clip.source_image_path).exists():
            raise MissingAssetError(f"Clip image not found: {clip.source_image_path}")


def compile_timeline(
    timeline: Timeline,
    config: Configuration,
    rng: random.Random | None = None,
    output_path: str | Path | None = None,
) -> CompiledRender:
    """Build the render graph and backend invocation for ``timeline``.

    Raises :class:`MissingAssetError` for an absent image or font before any
    node is built; optional features that cannot be honored are skipped.
    """
    if not timeline.clips:
        raise ConfigurationError("Timeline has no clips to render.")
    _check_clip_assets(timeline.clips)
    font = drawtext_font_params(config.subtitle.font_path)
    style = get_subtitle_style(config.subtitle_style_name)
    profile = get_quality_profile(config.quality_profile)
    source = rng if rng is not None else random.Random(config.seed)
    width, height, fps = config.width, config.height, config.fps

    skipped: list[str] = []
    builder = GraphBuilder()
    intro = add_intro(builder, timeline.intro, width, height, fps, config.subtitle.font_path, skipped)

    labels = [_add_clip(builder, clip, position, config, style, font) for position, clip in enumerate(timeline.clips)]
    schedule = schedule_transitions(
        [clip.display_duration for clip in timeline.clips],
        timeline.transition_duration,
        mode=timeline.transition_mode,
        transition=timeline.transition,
        fps=fps,
        rng=source,
    )
    main = _add_transitions(builder, labels, schedule)
    main = add_logo_overlay(builder, main, timeline.branding, width, height, skipped)

    outro = add_outro(builder, timeline.outro, width, height, fps, config.subtitle.font_path, skipped)

    segments = [main]
    total_duration = schedule.total_duration
    if intro is not None:
        segments.insert(0, intro.label)
        total_duration += intro.duration
    if outro is not None:
        segments.append(outro.label)
        total_duration += outro.duration
    video_output = main
    if len(segments) > 1:
        video_output = builder.add("vout", "concat", [("n", len(segments)), ("v", 1), ("a", 0)], inputs=segments)

    audio_output = add_background_audio(builder, timeline.audio, total_duration, skipped)
    graph = builder.build(video_output, audio_output)

    target = str(output_path if output_path is not None else config.output_path)
    invocation = BackendInvocation(
        input_args=tuple(graph.input_args()),
        filter_complex=graph.describe(),
        map_args=tuple(graph.map_args()),
        encode_args=tuple(encode_args(profile, fps, audio_output is not None)),
        output_path=target,
    )
    _logger.info(
        "Compiled %d clips into %d graph nodes (%.2fs, %s)",
        len(timeline.clips),
        len(graph.nodes),
        total_duration,
        "with audio" if audio_output else "silent",
    )
    return CompiledRender(
        timeline=timeline,
        graph=graph,
        schedule=schedule,
        invocation=invocation,
        total_duration=total_duration,
        skipped_features=tuple(skipped),
    )


def _write_render_report(report_path: Path, payload: dict[str, Any]) -> None:
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        _logger.warning("Could not write render report %s: %s", report_path, exc)


def run_compiled(
    compiled: CompiledRender,
    on_progress: ProgressSink | None = None,
    timeout_sec: float | None = None,
) -> Path:
    """Run the single backend invocation; success is a zero exit plus an output file."""
    ffmpeg_exe = ensure_ffmpeg_exists()
    output_path = ensure_parent_dir(compiled.invocation.output_path).resolve()
    render_dir = output_path.with_name(f"{output_path.stem}_render_logs")
    cmd = compiled.invocation.to_command(ffmpeg_exe)
    if output_path.exists():
        output_path.unlink()

    def _forward(snapshot: dict[str, str]) -> None:
        fraction = progress_fraction(snapshot, compiled.total_duration)
        if fraction is not None:
            emit(on_progress, "rendering", fraction=fraction, output_path=str(output_path))

    emit(on_progress, "rendering", f"Encoding {compiled.total_duration:.1f}s video", fraction=0.0)
    result = run_ffmpeg_streaming(cmd, render_dir, timeout_sec=timeout_sec, on_progress=_forward)

    error: str | None = None
    if result.get("timed_out"):
        error = f"ffmpeg timed out after {timeout_sec}s"
    elif not result["ok"]:
        error = f"ffmpeg exited with code {result['returncode']}"
    elif not output_path.exists() or output_path.stat().st_size == 0:
        error = f"Expected render output was not created: {output_path}"

    _write_render_report(
        render_dir / "render_report.json",
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": "failure" if error else "success",
            "error_excerpt": error,
            "total_duration": compiled.total_duration,
            "skipped_features": list(compiled.skipped_features),
            "ffmpeg_command": cmd,
            "stderr_path": result.get("stderr_path"),
        },
    )
    if error:
        emit(on_progress, "error", error, output_path=str(output_path))
        raise RenderBackendError(error, returncode=result.get("returncode"), stderr=result.get("stderr", ""), command=cmd)

    emit(on_progress, "done", f"Rendered {output_path.name}", fraction=1.0, output_path=str(output_path))
    return output_path


def render_video(
    clip_inputs: Iterable[ClipInput | dict | str],
    config: Configuration | dict[str, Any],
    on_progress: ProgressSink | None = None,
    rng: random.Random | None = None,
    timeout_sec: float | None = None,
) -> Path:
    """Build, compile and render a short from ordered clips."""
    emit(on_progress, "analyzing", "Building timeline")
    try:
        config = Configuration.coerce(config)
        source = rng if rng is not None else random.Random(config.seed)
        timeline = build_timeline(clip_inputs, config, rng=source)
        compiled = compile_timeline(timeline, config, rng=source)
    except ShortsEngineError as exc:
        emit(on_progress, "error", str(exc))
        raise
    return run_compiled(compiled, on_progress=on_progress, timeout_sec=timeout_sec)
