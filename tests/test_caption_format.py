import pytest

from src.video.captions import (
    caption_animation_params,
    calculate_dynamic_font_size,
    format_subtitle,
    is_particle,
    split_at_meaningful_boundary,
    wrap_caption,
)
from src.video.errors import ConfigurationError


def test_short_text_is_returned_unchanged() -> None:
    for strategy in ("greedy", "balanced", "particle", "meaningful"):
        assert wrap_caption("휠 복원", strategy, 15) == "휠 복원"


def test_two_lines_are_balanced_at_word_boundary() -> None:
    assert format_subtitle("aaaaaaa bb cc", max_length=10) == "aaaaaaa\nbb cc"
    assert wrap_caption("aaaaaaa bb cc", "greedy", 10) == "aaaaaaa bb\ncc"


def test_words_longer_than_limit_are_hard_split() -> None:
    assert wrap_caption("abcdefghijkl xy", "greedy", 5) == "abcde\nfghij\nkl\nxy"


def test_text_without_spaces_splits_by_character() -> None:
    assert format_subtitle("가나다라마바사", max_length=3) == "가나다\n라마바\n사"


def test_particle_safe_wrap_keeps_particle_on_previous_line() -> None:
    text = "aaaa bbbb 에서 cc"
    assert wrap_caption(text, "balanced", 12) == "aaaa bbbb\n에서 cc"
    assert wrap_caption(text, "particle", 12) == "aaaa bbbb 에서\ncc"


def test_particle_safe_wrap_on_korean_caption() -> None:
    wrapped = wrap_caption("휠은 새롭게 복원되었습니다", "particle", 12)

    assert wrapped == "휠은 새롭게\n복원되었습니다"
    assert not any(is_particle(line.split(" ")[0]) for line in wrapped.split("\n")[1:])


def test_particle_detection_uses_prefix_match() -> None:
    assert is_particle("에서")
    assert is_particle("이번")
    assert not is_particle("휠")
    assert not is_particle("")


def test_meaningful_boundary_splits_at_punctuation() -> None:
    text = "안녕하세요, 오늘은 휠 복원 작업입니다."
    assert split_at_meaningful_boundary(text, 15) == "안녕하세요,\n오늘은 휠 복원 작업입니다."


def test_meaningful_boundary_caps_line_count() -> None:
    assert split_at_meaningful_boundary("aa, bb, cc, dd", 3, max_lines=3) == "aa,\nbb,\ncc,"


def test_unknown_wrap_strategy_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        wrap_caption("long enough caption text here", "zigzag", 10)


def test_dynamic_font_size_shrinks_long_captions() -> None:
    assert calculate_dynamic_font_size("") == 60
    assert calculate_dynamic_font_size("가" * 15) == 60
    assert calculate_dynamic_font_size("가" * 25) == 55
    assert calculate_dynamic_font_size("가" * 100) == 40


def test_fade_in_alpha_is_relative_to_clip_start() -> None:
    params = caption_animation_params("fadeIn", clip_start=0, clip_duration=3.0)

    assert params == {"alpha": "if(lt(t-0,0.4),max(t-0,0)/0.4,1)"}


def test_typing_animation_degrades_to_fade_in() -> None:
    assert caption_animation_params("typing", 0, 3.0) == caption_animation_params("fadeIn", 0, 3.0)


def test_slide_up_moves_from_below_base_position() -> None:
    params = caption_animation_params("slideUp", clip_start=0, clip_duration=3.0, base_y="h-h/6")

    assert params["y"].startswith("h-h/6+if(")
    assert "alpha" in params


def test_no_animation_has_no_overrides() -> None:
    assert caption_animation_params("none", 0, 3.0) == {}
