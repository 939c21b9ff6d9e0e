from __future__ import annotations

import logging
from pathlib import Path

from .render_graph import GraphBuilder
from .timeline_schema import AudioTrack
from .utils import warn_skipped

_logger = logging.getLogger(__name__)


def add_background_audio(
    builder: GraphBuilder,
    audio: AudioTrack,
    total_duration: float,
    skipped: list[str] | None = None,
) -> str | None:
    """Append the background track chain and return its output label.

    Returns ``None`` when there is no usable track; the render is then silent.
    """
    if not audio.path:
        return None
    audio_path = Path(audio.path)
    if not audio_path.exists():
        warn_skipped("audio", f"file not found: {audio.path}", skipped)
        return None

    options = ["-stream_loop", "-1"] if audio.loop else []
    index = builder.add_input(str(audio_path.resolve()), options)

    steps = [
        ("trim", "atrim", [("start", 0), ("end", total_duration)]),
        ("pts", "asetpts", [(None, "N/SR/TB")]),
    ]
    if audio.loudnorm:
        steps.append(
            ("norm", "loudnorm", [("I", audio.target_i), ("TP", audio.true_peak), ("LRA", audio.lra)])
        )
    steps.append(("vol", "volume", [(None, audio.mix_volume)]))
    if audio.fade_in > 0:
        steps.append(("fade", "afade", [("t", "in"), ("st", 0), ("d", audio.fade_in)]))

    _logger.info("Mixing background audio %s (volume %.2f, loop=%s)", audio_path.name, audio.mix_volume, audio.loop)
    return builder.chain(f"{index}:a", "bgm", steps)
