import pytest

from src.video.durations import calculate_duration, count_reading_chars, parse_reading_speed
from src.video.errors import ConfigurationError


def test_empty_caption_uses_minimum_duration() -> None:
    assert calculate_duration("") == 2.0
    assert calculate_duration(None, min_duration=3.0) == 3.0


def test_long_caption_is_capped_at_maximum() -> None:
    assert calculate_duration("가" * 50) == 6.0


def test_duration_follows_reading_speed_and_buffer() -> None:
    # 10 characters at 250 CPM is 2.4s, plus the 0.5s buffer.
    assert calculate_duration("가나다라마 바사아자차") == pytest.approx(2.9)


def test_whitespace_is_not_counted() -> None:
    assert count_reading_chars(" 휠 복원\n완료 ") == 5


def test_duration_rounds_half_up_to_one_decimal() -> None:
    # 3 chars at 120 CPM is 1.5s + 0.75 buffer = 2.25s.
    assert calculate_duration("가나다", reading_speed=120, buffer_time=0.75) == pytest.approx(2.3)


def test_parse_reading_speed_accepts_presets_and_numbers() -> None:
    assert parse_reading_speed("slow") == 200
    assert parse_reading_speed("fast") == 300
    assert parse_reading_speed(275) == 275
    assert parse_reading_speed("180") == 180


def test_parse_reading_speed_rejects_unknown_values() -> None:
    with pytest.raises(ConfigurationError):
        parse_reading_speed("speedy")
    with pytest.raises(ConfigurationError):
        parse_reading_speed(0)
