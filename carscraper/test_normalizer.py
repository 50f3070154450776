#!/usr/bin/env python3
"""
Tests for digit de-obfuscation helpers.
"""
import pytest

from carscraper.normalizer import (
    deobfuscate_digits,
    digits_only,
    emoji_to_digits,
    format_phone,
    letter_o_to_zero,
    spelled_to_digits,
)


def test_spelled_units_and_teens():
    """Test unit and teen words become digits."""
    assert spelled_to_digits("seven seven three") == "7 7 3"
    assert spelled_to_digits("eleven") == "11"
    assert spelled_to_digits("Nine") == "9"


def test_spelled_tens():
    """Test tens with and without a trailing unit."""
    assert spelled_to_digits("sixty-four") == "64"
    assert spelled_to_digits("forty two") == "42"
    assert spelled_to_digits("twenty") == "20"


def test_spelled_words_inside_other_words_are_kept():
    """Test that "someone" keeps its "one" while digits act as boundaries."""
    assert spelled_to_digits("someone") == "someone"
    assert spelled_to_digits("9zero8") == "908"


def test_emoji_digits():
    """Test keycap, circled and fullwidth digits."""
    assert emoji_to_digits("3\ufe0f\u20e31\ufe0f\u20e3") == "31"
    assert emoji_to_digits("\u2460\u2461\u2462") == "123"
    assert emoji_to_digits("\uff15\uff15\uff15") == "555"


def test_letter_o_next_to_digits():
    """Test a standalone O becomes zero only beside a digit."""
    assert letter_o_to_zero("O12") == "012"
    assert letter_o_to_zero("5 o 5") == "5 0 5"
    assert letter_o_to_zero("Oh no") == "Oh no"
    assert letter_o_to_zero("hello 5") == "hello 5"


def test_letter_o_runs():
    """Test doubled Os count as zeros but never inside a word."""
    assert letter_o_to_zero("8OO 555 0199") == "800 555 0199"
    assert letter_o_to_zero("312 555 01OO") == "312 555 0100"
    assert letter_o_to_zero("OO 7") == "00 7"
    assert letter_o_to_zero("GOOD 5") == "GOOD 5"
    assert letter_o_to_zero("OO only") == "OO only"


def test_deobfuscate_full_chain():
    """Test the combined normalization."""
    assert deobfuscate_digits("(312) 555.0199") == "312 555 0199"
    assert deobfuscate_digits("six three 0 - nine4three") == "6 3 0 - 943"
    assert deobfuscate_digits("") == ""
    assert deobfuscate_digits(None) == ""


@pytest.mark.parametrize("text", [
    None, "", "abc", "\uff13\u2460 x", "3\ufe0f\u20e3", "\U0001d7ce\U0001d7cf", "tel: +1 (312) 555-0199",
])
def test_digits_only_is_ascii(text):
    """Test digits_only never returns anything but ASCII digits."""
    out = digits_only(deobfuscate_digits(text))
    assert all(c in "0123456789" for c in out)


def test_format_phone():
    """Test phone grouping by length."""
    assert format_phone("5550199") == "555-0199"
    assert format_phone("3125550199") == "312-555-0199"
    assert format_phone("13125550199") == "1-312-555-0199"
    assert format_phone("447911123456") == "447911123456"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
