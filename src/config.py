"""Load the compiler :class:`Configuration` from a file or dict.

Precedence, lowest first: the caller's options, the named template, then the
``SHORTS_*`` environment overrides. ``FFMPEG_PATH`` is read directly by the
executable lookup in :mod:`src.video.utils`.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Union

from src.video.errors import ConfigurationError
from src.video.templates import apply_template
from src.video.timeline_schema import Configuration

_logger = logging.getLogger(__name__)

FONT_PATH_ENV = "SHORTS_FONT_PATH"
OUTPUT_DIR_ENV = "SHORTS_OUTPUT_DIR"


def _normalize(value: str) -> str:
    """Strip whitespace and surrounding quotes; reject known placeholder strings."""
    v = str(value or "").strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in {'"', "'"}:
        v = v[1:-1].strip()
    low = v.lower()
    if low in {"none", "null", ""}:
        return ""
    # Unfilled placeholders such as PASTE_PATH_HERE or YOUR_FONT_HERE.
    if low.startswith(("paste_", "paste-", "your_", "your-", "replace_me", "changeme", "xxx")):
        return ""
    if low.endswith(("_here", "-here")):
        return ""
    return v


def get_setting(name: str, default: str = "") -> str:
    """Return an environment setting, checking ``name``, lower and upper case."""
    for key in dict.fromkeys([name, name.lower(), name.upper()]):
        v = _normalize(os.getenv(key, ""))
        if v:
            return v
    return _normalize(default)


def read_options(source: Union[str, Path, Mapping[str, Any], None]) -> dict[str, Any]:
    if source is None:
        return {}
    if isinstance(source, Mapping):
        return dict(source)
    path = Path(source)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
    return data


def apply_env_overrides(options: dict[str, Any]) -> dict[str, Any]:
    merged = dict(options)
    font_path = get_setting(FONT_PATH_ENV)
    if font_path:
        subtitle = dict(merged.get("subtitle") or {})
        subtitle["font_path"] = font_path
        merged["subtitle"] = subtitle
        _logger.info("Using font from %s: %s", FONT_PATH_ENV, font_path)
    output_dir = get_setting(OUTPUT_DIR_ENV)
    if output_dir:
        name = Path(str(merged.get("output_path") or Configuration.model_fields["output_path"].default)).name
        merged["output_path"] = str(Path(output_dir) / name)
        _logger.info("Writing output under %s from %s", output_dir, OUTPUT_DIR_ENV)
    return merged


def load_configuration(
    source: Union[str, Path, Mapping[str, Any], None] = None,
    template: str | None = None,
    **overrides: Any,
) -> Configuration:
    """Build a validated configuration; invalid values raise ConfigurationError."""
    options = read_options(source)
    options.update(overrides)
    template_name = template or options.pop("template", None)
    if template_name:
        options = apply_template(options, template_name)
    options = apply_env_overrides(options)
    return Configuration.from_options(options)
