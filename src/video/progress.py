from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional

_logger = logging.getLogger(__name__)

RenderPhase = Literal["analyzing", "rendering", "done", "error"]


@dataclass(frozen=True)
class RenderEvent:
    kind: RenderPhase
    message: str = ""
    fraction: Optional[float] = None
    output_path: Optional[str] = None


ProgressSink = Callable[[RenderEvent], None]


def emit(sink: ProgressSink | None, kind: RenderPhase, message: str = "", **fields) -> RenderEvent:
    event = RenderEvent(kind=kind, message=message, **fields)
    if event.kind == "error":
        _logger.error("%s", message)
    elif message:
        _logger.info("[%s] %s", kind, message)
    if sink is not None:
        sink(event)
    return event
