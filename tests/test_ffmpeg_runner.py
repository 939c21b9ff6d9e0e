from pathlib import Path

import pytest

from src.video import ffmpeg_render
from src.video.errors import ConfigurationError, RenderBackendError
from src.video.ffmpeg_runner import progress_fraction, with_progress_args
from src.video.timeline_schema import Configuration


def test_progress_args_are_inserted_after_executable() -> None:
    cmd = with_progress_args(["ffmpeg", "-y", "-i", "in.jpg", "out.mp4"])

    assert cmd[0] == "ffmpeg"
    assert cmd[1:7] == ["-hide_banner", "-loglevel", "level+info", "-progress", "pipe:1", "-nostats"]
    assert cmd[-1] == "out.mp4"


def test_progress_args_are_not_duplicated() -> None:
    cmd = ["ffmpeg", "-hide_banner", "-nostats", "-progress", "pipe:1", "-loglevel", "error", "out.mp4"]

    assert with_progress_args(cmd) == cmd


def test_progress_fraction_from_snapshot() -> None:
    assert progress_fraction({"out_time_us": "4000000", "progress": "continue"}, 8.0) == pytest.approx(0.5)
    assert progress_fraction({"out_time_us": "N/A", "progress": "continue"}, 8.0) is None
    assert progress_fraction({"progress": "end"}, 8.0) == 1.0
    assert progress_fraction({"out_time_us": "99000000"}, 8.0) == 1.0


def _fake_backend(monkeypatch: pytest.MonkeyPatch, returncode: int, write_output: bool) -> list[list[str]]:
    calls: list[list[str]] = []

    def _run(cmd, workdir, timeout_sec=None, on_progress=None):
        calls.append(cmd)
        if on_progress:
            on_progress({"out_time_us": "1500000", "progress": "continue"})
        if write_output:
            Path(cmd[-1]).write_bytes(b"\x00\x00\x00\x18ftypmp42")
        return {
            "ok": returncode == 0,
            "returncode": returncode,
            "stdout": "",
            "stderr": "" if returncode == 0 else "Error initializing filter 'xfade'",
            "timed_out": False,
            "stderr_path": str(workdir / "ffmpeg-stderr.log"),
        }

    monkeypatch.setattr(ffmpeg_render, "ensure_ffmpeg_exists", lambda: "/usr/bin/ffmpeg")
    monkeypatch.setattr(ffmpeg_render, "run_ffmpeg_streaming", _run)
    return calls


def test_render_video_reports_progress_and_output(monkeypatch: pytest.MonkeyPatch, make_images, tmp_path: Path) -> None:
    calls = _fake_backend(monkeypatch, returncode=0, write_output=True)
    events = []
    config = Configuration(output_path=str(tmp_path / "out" / "short.mp4"))

    output = ffmpeg_render.render_video(make_images(2), config, on_progress=events.append)

    assert output.exists()
    assert len(calls) == 1
    assert calls[0][0] == "/usr/bin/ffmpeg"
    assert [event.kind for event in events] == ["analyzing", "rendering", "rendering", "done"]
    assert events[2].fraction == pytest.approx(1.5 / 5.5)
    assert events[-1].output_path == str(output)
    assert (tmp_path / "out" / "short_render_logs" / "render_report.json").exists()


def test_render_video_raises_backend_error(monkeypatch: pytest.MonkeyPatch, make_images, tmp_path: Path) -> None:
    _fake_backend(monkeypatch, returncode=1, write_output=False)
    events = []
    config = Configuration(output_path=str(tmp_path / "short.mp4"))

    with pytest.raises(RenderBackendError) as excinfo:
        ffmpeg_render.render_video(make_images(2), config, on_progress=events.append)

    assert excinfo.value.returncode == 1
    assert "xfade" in excinfo.value.stderr
    assert events[-1].kind == "error"


def test_render_video_requires_output_file(monkeypatch: pytest.MonkeyPatch, make_images, tmp_path: Path) -> None:
    _fake_backend(monkeypatch, returncode=0, write_output=False)
    config = Configuration(output_path=str(tmp_path / "short.mp4"))

    with pytest.raises(RenderBackendError, match="not created"):
        ffmpeg_render.render_video(make_images(1), config)


def test_render_video_converts_raw_options(monkeypatch: pytest.MonkeyPatch, make_images, tmp_path: Path) -> None:
    calls = _fake_backend(monkeypatch, returncode=0, write_output=True)
    events = []

    with pytest.raises(ConfigurationError):
        ffmpeg_render.render_video(make_images(1), {"outro": {"preset": "neon"}}, on_progress=events.append)

    assert calls == []
    assert [event.kind for event in events] == ["analyzing", "error"]

    output = ffmpeg_render.render_video(make_images(1), {"output_path": str(tmp_path / "raw.mp4")})
    assert output.name == "raw.mp4"
