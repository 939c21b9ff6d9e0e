from pathlib import Path

import pytest

from src.video import thumbnail
from src.video.errors import ConfigurationError, MissingAssetError, RenderBackendError
from src.video.preview import estimate_preview_time, preview_configuration, preview_output_path
from src.video.thumbnail import build_thumbnail_command, calculate_seek_position, default_thumbnail_path
from src.video.timeline_schema import Configuration


def test_preview_configuration_shrinks_canvas_and_drops_audio() -> None:
    config = Configuration(transition_duration=0.8, zoom_intensity=0.2, audio={"path": "bgm.mp3"}, output_path="out/a.mp4")
    preview = preview_configuration(config, "balanced")

    assert (preview.width, preview.height, preview.fps) == (540, 960, 24)
    assert preview.transition_duration == pytest.approx(0.3)
    assert preview.zoom_intensity == pytest.approx(0.14)
    assert preview.audio.path is None
    assert preview.quality_profile == "preview_balanced"
    assert preview.output_path == str(Path("out/a_preview.mp4"))
    assert config.width == 1080


def test_preview_keeps_short_transitions() -> None:
    preview = preview_configuration(Configuration(transition_duration=0.2), "fast")

    assert preview.transition_duration == pytest.approx(0.2)
    assert (preview.width, preview.height) == (360, 640)


def test_unknown_preview_quality() -> None:
    with pytest.raises(ConfigurationError):
        preview_configuration(Configuration(), "ultra")


def test_preview_time_estimate() -> None:
    assert estimate_preview_time(10, "fast") == "~20s"
    assert estimate_preview_time(20, "quality") == "~2m"
    assert preview_output_path("clip.mp4").name == "clip_preview.mp4"


def test_seek_positions() -> None:
    assert calculate_seek_position("start", 10.0) == 0.0
    assert calculate_seek_position("middle", 10.0) == 5.0
    assert calculate_seek_position("end", 10.0) == 9.5
    assert calculate_seek_position("end", 0.2) == 0.0
    assert calculate_seek_position(25, 10.0) == 10.0
    with pytest.raises(ConfigurationError):
        calculate_seek_position("last", 10.0)


def test_thumbnail_command_scales_and_pads() -> None:
    cmd = build_thumbnail_command("ffmpeg", "in.mp4", "in_thumb.jpg", seek=5.0, width=540, height=960)

    assert cmd[cmd.index("-ss") + 1] == "5"
    assert cmd[cmd.index("-frames:v") + 1] == "1"
    assert "pad=540:960:(ow-iw)/2:(oh-ih)/2:black" in cmd[cmd.index("-vf") + 1]
    assert default_thumbnail_path("renders/short.mp4") == Path("renders/short_thumb.jpg")


def test_generate_thumbnail_requires_video(tmp_path: Path) -> None:
    with pytest.raises(MissingAssetError):
        thumbnail.generate_thumbnail(tmp_path / "missing.mp4")


def test_generate_thumbnail_raises_on_backend_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    video = tmp_path / "short.mp4"
    video.write_bytes(b"\x00")

    class _Result:
        returncode = 1
        stderr = "Invalid data found when processing input"

    monkeypatch.setattr(thumbnail, "ensure_ffmpeg_exists", lambda: "ffmpeg")
    monkeypatch.setattr(thumbnail, "get_media_duration", lambda path: 12.0)
    monkeypatch.setattr(thumbnail.subprocess, "run", lambda *args, **kwargs: _Result())

    with pytest.raises(RenderBackendError) as excinfo:
        thumbnail.generate_thumbnail(video, position="end")

    assert excinfo.value.returncode == 1
    assert "11.5" in excinfo.value.command
    assert "Invalid data" in str(excinfo.value)
