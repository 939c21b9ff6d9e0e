from __future__ import annotations

import logging
import subprocess
import threading
import time
from collections import deque
from pathlib import Path
from typing import IO, Any, Callable

_logger = logging.getLogger(__name__)

ProgressSnapshot = dict[str, str]


def tail_text(path: Path, max_lines: int = 200) -> str:
    if not path.exists():
        return ""
    with path.open("r", encoding="utf-8", errors="ignore") as handle:
        return "".join(deque(handle, maxlen=max_lines))


def with_progress_args(cmd: list[str]) -> list[str]:
    """Insert banner, loglevel and machine-readable progress flags after the executable."""
    updated = list(cmd)
    if not updated:
        return updated
    extra: list[str] = []
    if "-hide_banner" not in updated:
        extra.append("-hide_banner")
    if "-loglevel" not in updated:
        extra.extend(["-loglevel", "level+info"])
    if "-progress" not in updated:
        extra.extend(["-progress", "pipe:1"])
    if "-nostats" not in updated:
        extra.append("-nostats")
    updated[1:1] = extra
    return updated


def progress_fraction(snapshot: ProgressSnapshot, total_duration: float) -> float | None:
    """Fraction of the output written so far, from an ``-progress`` key/value block."""
    if snapshot.get("progress") == "end":
        return 1.0
    if total_duration <= 0:
        return None
    raw = snapshot.get("out_time_us") or snapshot.get("out_time_ms")
    if not raw or raw == "N/A":
        return None
    try:
        seconds = int(raw) / 1_000_000
    except ValueError:
        return None
    return max(0.0, min(1.0, seconds / total_duration))


def _pump_progress(
    stream: IO[str],
    log_file: IO[str],
    on_progress: Callable[[ProgressSnapshot], None] | None,
) -> None:
    """Tee ``-progress pipe:1`` output and hand over each finished key/value block."""
    block: ProgressSnapshot = {}
    for line in stream:
        log_file.write(line)
        log_file.flush()
        key, sep, value = line.strip().partition("=")
        if not sep:
            continue
        block[key] = value
        if key == "progress":
            if on_progress is not None:
                on_progress(dict(block))
            block = {}


def _pump_log(stream: IO[str], log_file: IO[str]) -> None:
    for line in stream:
        log_file.write(line)
        log_file.flush()


def _wait(process: subprocess.Popen, timeout_sec: float | None) -> bool:
    """Block until the process exits; returns True when it had to be stopped."""
    deadline = None if timeout_sec is None else time.monotonic() + timeout_sec
    while process.poll() is None:
        if deadline is not None and time.monotonic() > deadline:
            _logger.warning("ffmpeg exceeded %.0fs; terminating", timeout_sec)
            process.terminate()
            try:
                process.wait(timeout=3)
            except subprocess.TimeoutExpired:
                process.kill()
            return True
        time.sleep(0.1)
    return False


def run_ffmpeg_streaming(
    cmd: list[str],
    workdir: Path,
    timeout_sec: float | None = None,
    on_progress: Callable[[ProgressSnapshot], None] | None = None,
) -> dict[str, Any]:
    """Run one ffmpeg process, teeing its output into ``workdir`` log files.

    ``on_progress`` receives each completed ``-progress`` block. When
    ``timeout_sec`` elapses the process is terminated, then killed.
    """
    if not cmd or not cmd[0]:
        raise ValueError(f"Invalid ffmpeg command: {cmd!r}")

    full_cmd = with_progress_args(cmd)
    workdir.mkdir(parents=True, exist_ok=True)
    stdout_path = workdir / "ffmpeg-stdout.log"
    stderr_path = workdir / "ffmpeg-stderr.log"
    with (workdir / "render.log").open("a", encoding="utf-8") as render_log:
        render_log.write(" ".join(full_cmd) + "\n")
    _logger.debug("Running %s", " ".join(full_cmd))

    with stdout_path.open("a", encoding="utf-8") as stdout_log, stderr_path.open("a", encoding="utf-8") as stderr_log:
        process = subprocess.Popen(
            full_cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            shell=False,
        )
        readers = [
            threading.Thread(target=_pump_progress, args=(process.stdout, stdout_log, on_progress), daemon=True),
            threading.Thread(target=_pump_log, args=(process.stderr, stderr_log), daemon=True),
        ]
        for reader in readers:
            reader.start()
        timed_out = _wait(process, timeout_sec)
        returncode = process.wait()
        for reader in readers:
            reader.join(timeout=2)

    return {
        "ok": returncode == 0 and not timed_out,
        "returncode": returncode,
        "stdout": tail_text(stdout_path, max_lines=200),
        "stderr": tail_text(stderr_path, max_lines=200),
        "timed_out": timed_out,
        "stdout_path": str(stdout_path),
        "stderr_path": str(stderr_path),
        "workdir": str(workdir),
    }
