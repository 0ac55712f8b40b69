import threading

import pytest

from allin.clock_display import (
    COLON_FLAG,
    DIGIT_SEGMENTS,
    ClockDisplay,
    encode_digit,
    format_time,
)


@pytest.fixture
def gpio_tree(tmp_path):
    for pin in (2, 3):
        pin_dir = tmp_path / f"gpio{pin}"
        pin_dir.mkdir()
        (pin_dir / "value").write_text("1")
        (pin_dir / "direction").write_text("out")
    return tmp_path


@pytest.mark.parametrize("hour", [0, 9, 10, 23])
@pytest.mark.parametrize("minute", [0, 5, 10, 59])
def test_format_time_round_trip(hour, minute):
    text = format_time(hour, minute)
    assert len(text) == 4
    assert (int(text[:2]), int(text[2:])) == (hour, minute)


def test_format_time_pads_with_zeros():
    assert format_time(9, 5) == "0905"


@pytest.mark.parametrize("digit", "0123456789")
def test_colon_adds_flag(digit):
    assert encode_digit(digit, True, True) == encode_digit(digit, False, True) | COLON_FLAG


def test_encode_digit_uses_segment_table():
    assert encode_digit("8", False, True) == 0x7F
    assert [encode_digit(d, False) for d in "0123456789"] == list(DIGIT_SEGMENTS)


def test_digit_encodings_are_distinct():
    assert len({encode_digit(d, False, True) for d in "0123456789"}) == 10


@pytest.mark.parametrize("digit", "0123456789")
def test_disabled_digits_are_blank(digit):
    assert encode_digit(digit, False, False) == 0
    assert encode_digit(digit, True, False) == COLON_FLAG


def test_non_digit_is_blank():
    assert encode_digit("x", False, True) == 0
    assert encode_digit("\0", True, True) == COLON_FLAG


def test_show_rejects_wrong_length(gpio_tree):
    display = ClockDisplay(str(gpio_tree), threading.Event())
    with pytest.raises(ValueError):
        display.show("12")


def test_show_raises_without_acknowledge(gpio_tree):
    display = ClockDisplay(str(gpio_tree), threading.Event())
    with pytest.raises(OSError):
        display.show("1234")
    assert (gpio_tree / "gpio3" / "direction").read_text() == "in"
    assert (gpio_tree / "gpio2" / "value").read_text() == "0"


def test_paths_follow_gpio_root(gpio_tree):
    display = ClockDisplay(str(gpio_tree))
    assert display.clk_value == gpio_tree / "gpio2" / "value"
    assert display.dio_direction == gpio_tree / "gpio3" / "direction"