import random
from pathlib import Path

import pytest

from src.video.errors import MissingAssetError, SkippableFeatureWarning
from src.video.ffmpeg_render import compile_timeline, encode_args
from src.video.templates import get_quality_profile
from src.video.timeline_builder import build_timeline
from src.video.timeline_schema import ClipInput, Configuration


def _compile(paths, config: Configuration, seed: int = 1):
    timeline = build_timeline(paths, config, rng=random.Random(seed))
    return compile_timeline(timeline, config, rng=random.Random(seed))


def test_three_clips_chain_xfades_at_scheduled_offsets(make_images) -> None:
    config = Configuration()
    compiled = _compile(make_images(3), config)
    graph_text = compiled.invocation.filter_complex

    assert len(compiled.graph.nodes_by_op("xfade")) == 2
    assert "xfade=transition=fade:duration=0.5:offset=2.5[xf1]" in graph_text
    assert "[xf1][c2_fmt]xfade=transition=fade:duration=0.5:offset=5[xf2]" in graph_text
    assert compiled.total_duration == pytest.approx(8.0)
    assert compiled.graph.video_output == "xf2"


def test_single_clip_bypasses_transitions(make_images) -> None:
    compiled = _compile(make_images(1), Configuration())

    assert compiled.graph.nodes_by_op("xfade") == []
    assert compiled.schedule.is_single_clip
    assert compiled.total_duration == pytest.approx(3.0)


def test_silent_render_has_no_audio_mapping(make_images) -> None:
    compiled = _compile(make_images(2), Configuration())
    command = compiled.invocation.to_command("ffmpeg")

    assert compiled.graph.audio_output is None
    assert "-an" in command
    assert command.count("-map") == 1
    assert command[-1] == "output/shorts.mp4"


def test_motion_clip_feeds_single_frame_into_zoompan(make_images) -> None:
    compiled = _compile(make_images(1), Configuration())
    zoom = compiled.graph.node("c0_zoom")

    assert zoom.op == "zoompan"
    assert zoom.param("d") == 90
    assert zoom.param("s") == "1080x1920"
    assert compiled.invocation.input_args[:6] == ("-loop", "1", "-framerate", "1", "-t", "1")


def test_static_clip_scales_and_pads(make_images) -> None:
    compiled = _compile(make_images(1), Configuration(ken_burns=False))

    assert compiled.graph.nodes_by_op("zoompan") == []
    assert compiled.graph.node("c0_pad").param("w") == 1080
    assert "-framerate" in compiled.invocation.input_args
    assert compiled.invocation.input_args[compiled.invocation.input_args.index("-t") + 1] == "3"


def test_caption_drawtext_is_escaped(make_images) -> None:
    paths = make_images(1)
    compiled = _compile([ClipInput(source_image_path=paths[0], caption_text="It's on: now")], Configuration())
    drawtext = compiled.graph.node("c0_text")

    assert drawtext.param("text") == "It’s on\\: now"
    assert drawtext.param("expansion") == "none"
    assert drawtext.param("alpha") == "if(lt(t-0,0.4),max(t-0,0)/0.4,1)"
    assert "text='It’s on\\: now'" in compiled.invocation.filter_complex


def test_long_caption_is_wrapped_and_shrunk(make_images) -> None:
    paths = make_images(1)
    caption = "안녕하세요, 오늘은 휠 복원 작업입니다."
    compiled = _compile([ClipInput(source_image_path=paths[0], caption_text=caption)], Configuration())
    drawtext = compiled.graph.node("c0_text")

    assert drawtext.param("text") == "안녕하세요,\n오늘은 휠 복원 작업입니다."
    assert drawtext.param("fontsize") == 57


def test_audio_track_is_trimmed_normalized_and_faded(make_images, tmp_path: Path) -> None:
    bgm = tmp_path / "bgm.mp3"
    bgm.write_bytes(b"ID3")
    config = Configuration(audio={"path": str(bgm)})
    compiled = _compile(make_images(3), config)
    graph_text = compiled.invocation.filter_complex
    command = compiled.invocation.to_command("ffmpeg")

    assert compiled.graph.audio_output == "bgm_fade"
    assert "atrim=start=0:end=8" in graph_text
    assert "loudnorm=I=-16:TP=-1.5:LRA=11" in graph_text
    assert "volume=0.3" in graph_text
    assert "afade=t=in:st=0:d=0.5[bgm_fade]" in graph_text
    assert "-stream_loop" in command
    assert command.count("-map") == 2
    assert "-an" not in command


def test_missing_audio_is_skipped_with_warning(make_images, tmp_path: Path) -> None:
    config = Configuration(audio={"path": str(tmp_path / "absent.mp3")})

    with pytest.warns(SkippableFeatureWarning):
        compiled = _compile(make_images(2), config)

    assert compiled.graph.audio_output is None
    assert any(message.startswith("audio skipped") for message in compiled.skipped_features)


def test_intro_and_outro_are_concatenated(make_images) -> None:
    config = Configuration(
        intro={"enabled": True, "text": "휠 복원"},
        outro={"enabled": True, "text": "감사합니다"},
    )
    compiled = _compile(make_images(2), config)
    concat = compiled.graph.node("vout")

    assert concat.inputs == ("intro_fadeout", "xf1", "outro_fadeout")
    assert concat.param("n") == 3
    assert compiled.total_duration == pytest.approx(5.5 + 2.0 + 3.0)
    assert compiled.graph.node("outro_sub").op == "drawtext"
    assert compiled.graph.node("intro_fadeout").param("st") == pytest.approx(1.5)


def test_intro_without_text_is_skipped(make_images) -> None:
    config = Configuration(intro={"enabled": True, "text": "  "})

    with pytest.warns(SkippableFeatureWarning):
        compiled = _compile(make_images(1), config)

    assert "intro_bg" not in compiled.graph.node_ids


def test_logo_is_overlaid_once(make_images, tmp_path: Path) -> None:
    logo = tmp_path / "logo.png"
    logo.write_bytes(b"\x89PNG")
    config = Configuration(branding={"enabled": True, "logo_path": str(logo)})
    compiled = _compile(make_images(2), config)

    assert len(compiled.graph.nodes_by_op("overlay")) == 1
    assert "overlay=x=405:y=96[logo_overlay]" in compiled.invocation.filter_complex
    assert compiled.graph.node("logo_scale").param("w") == 270
    assert compiled.graph.video_output == "logo_overlay"


def test_missing_logo_is_skipped(make_images, tmp_path: Path) -> None:
    config = Configuration(branding={"enabled": True, "logo_path": str(tmp_path / "nope.png")})

    with pytest.warns(SkippableFeatureWarning):
        compiled = _compile(make_images(1), config)

    assert compiled.graph.nodes_by_op("overlay") == []


def test_missing_font_aborts_compilation(make_images, tmp_path: Path) -> None:
    config = Configuration(subtitle={"font_path": str(tmp_path / "missing.ttf")})

    with pytest.raises(MissingAssetError):
        _compile(make_images(1), config)


def test_missing_image_aborts_before_graph(tmp_path: Path) -> None:
    with pytest.raises(MissingAssetError):
        build_timeline([str(tmp_path / "ghost.jpg")], Configuration())


def test_compilation_is_deterministic_for_a_seed(make_images) -> None:
    paths = make_images(5)
    config = Configuration(transition_mode="random", ken_burns_mode="random", seed=42)

    first = _compile(paths, config, seed=42).invocation
    second = _compile(paths, config, seed=42).invocation

    assert first.filter_complex == second.filter_complex
    assert first.to_command() == second.to_command()


def test_encode_args_follow_quality_profile() -> None:
    args = encode_args(get_quality_profile("high"), fps=30, has_audio=True)

    assert args[args.index("-crf") + 1] == "18"
    assert args[args.index("-preset") + 1] == "slow"
    assert args[args.index("-maxrate") + 1] == "12M"
    assert args[args.index("-b:a") + 1] == "192k"
    assert args[-2:] == ["-movflags", "+faststart"]
