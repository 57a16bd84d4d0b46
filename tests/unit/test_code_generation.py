from datetime import datetime

import pytest

from passcode_service.domain.services import (
    PASSCODE_ALPHABET,
    generate_passcode,
    generate_passcode_with_suffix,
    is_valid_format,
    secure_compare,
)


@pytest.mark.parametrize("length", range(4, 11))
def test_generate_passcode_length_and_charset(length):
    for _ in range(50):
        c = generate_passcode(length)
        assert len(c) == length
        assert is_valid_format(c), c


def test_generate_passcode_uses_whole_alphabet_eventually():
    seen = set("".join(generate_passcode(10) for _ in range(500)))
    # not a strict randomness test, but 5000 draws over 36 symbols hit them all
    assert seen == set(PASSCODE_ALPHABET)


def test_generate_passcode_rejects_non_positive_length():
    with pytest.raises(ValueError):
        generate_passcode(0)
    assert len(generate_passcode(1)) == 1


def test_suffix_overwrites_last_two_chars_with_minute_digits():
    now = datetime(2026, 3, 4, 10, 27, 59)
    c = generate_passcode_with_suffix(6, True, now)
    assert len(c) == 6
    assert c.endswith("27")
    assert is_valid_format(c)


def test_suffix_flag_off_is_plain_random():
    c = generate_passcode_with_suffix(8, False, datetime(2026, 3, 4, 10, 27, 59))
    assert len(c) == 8 and is_valid_format(c)


@pytest.mark.parametrize("code", ["ABCD", "A1B2C3", "0000", "ZZZZZZZZZZ", "9A9A9A9"])
def test_valid_formats(code):
    assert is_valid_format(code) is True


@pytest.mark.parametrize(
    "code",
    [None, "", "   ", "ab", "abcdef", "AbCDEF", "ABC", "ABCDEFGHIJK", "AB-CD", "AB CD", "ABCD\n", "ÄBCD"],
)
def test_invalid_formats(code):
    assert is_valid_format(code) is False


def test_secure_compare_behavior():
    assert secure_compare("abcd", "abcd") is True
    assert secure_compare("abcd", "abce") is False
    assert secure_compare("", "") is True
    assert secure_compare("a", "") is False
