import random

import pytest

from src.video.errors import ConfigurationError
from src.video.motion import (
    PATTERN_NAMES,
    build_motion_profile,
    ease_in_out_cubic,
    pattern_profile,
    select_pattern,
)


def test_easing_curve_endpoints_and_midpoint() -> None:
    assert ease_in_out_cubic(0.0) == 0.0
    assert ease_in_out_cubic(0.5) == pytest.approx(0.5)
    assert ease_in_out_cubic(1.0) == 1.0
    assert ease_in_out_cubic(0.25) == pytest.approx(0.0625)


@pytest.mark.parametrize("pattern", PATTERN_NAMES)
def test_zoom_stays_within_intensity_bounds(pattern: str) -> None:
    profile = pattern_profile(pattern, intensity=0.2)
    for step in range(11):
        t = step / 10
        assert 1.0 <= profile.zoom(t) <= 1.2 + 1e-9
        assert 0.0 <= profile.x(t) <= 1.0
        assert 0.0 <= profile.y(t) <= 1.0


def test_center_zooms_run_in_opposite_directions() -> None:
    zoom_in = pattern_profile("zoom_in_center", 0.15)
    zoom_out = pattern_profile("zoom_out_center", 0.15)

    assert zoom_in.zoom(0) == pytest.approx(1.0)
    assert zoom_in.zoom(1) == pytest.approx(1.15)
    assert zoom_out.zoom(0) == pytest.approx(1.15)
    assert zoom_out.zoom(1) == pytest.approx(1.0)


def test_classic_mode_alternates_center_zooms() -> None:
    assert [select_pattern(i, "classic") for i in range(4)] == [
        "zoom_in_center",
        "zoom_out_center",
        "zoom_in_center",
        "zoom_out_center",
    ]


def test_sequential_mode_cycles_all_patterns() -> None:
    assert [select_pattern(i, "sequential") for i in range(9)] == [*PATTERN_NAMES, PATTERN_NAMES[0]]


def test_random_mode_is_reproducible_with_seed() -> None:
    first = [select_pattern(i, "random", random.Random(7)) for i in range(5)]
    second = [select_pattern(i, "random", random.Random(7)) for i in range(5)]

    assert first == second
    assert all(name in PATTERN_NAMES for name in first)


def test_zero_intensity_yields_static_profile() -> None:
    assert build_motion_profile(0, intensity=0).is_static


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        select_pattern(0, "spiral")


def test_zoompan_expressions_use_output_frame_number() -> None:
    expressions = pattern_profile("zoom_in_center", 0.15, eased=False).zoompan_expressions(90)

    assert expressions["z"] == "1+(0.15)*min(on/90,1)"
    assert expressions["x"] == "(0.5)*(iw-iw/zoom)"
