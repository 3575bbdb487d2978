"""
Tests for RUT cleaning, checksum validation and formatting.
"""
import pytest

from src.core.rut import clean_rut, compute_check_character, format_rut, validate_rut

VALID_RUTS = [
    "11.111.111-1",
    "111111111",
    "12.345.678-5",
    "12345678-5",
    "10.000.013-K",
    "10.000.013-k",
    "8.888.888-K",
    "12.345.675-0",
    "1.234.567-4",
    "99.999.999-9",
]


@pytest.mark.parametrize("rut", VALID_RUTS)
def test_valid_ruts(rut):
    assert validate_rut(rut) is True


@pytest.mark.parametrize("rut", VALID_RUTS)
def test_flipping_check_character_invalidates(rut):
    cleaned = clean_rut(rut)
    check = cleaned[-1]
    for replacement in "0123456789K":
        if replacement != check:
            assert validate_rut(cleaned[:-1] + replacement) is False


@pytest.mark.parametrize("rut", [
    "",
    "1",
    "-",
    "11.111.111-2",
    "11.ABC.111-1",
    "invalid-rut",
    "11 111 111-1",
    "12.345.678-X",
])
def test_invalid_ruts(rut):
    assert validate_rut(rut) is False


def test_check_character_mapping():
    # remainder 11 maps to '0' and remainder 10 to 'K'
    assert compute_check_character("12345675") == "0"
    assert compute_check_character("10000013") == "K"
    assert compute_check_character("12345678") == "5"


def test_clean_rut():
    assert clean_rut("11.111.111-1") == "111111111"
    assert clean_rut("11111111-1") == "111111111"
    assert clean_rut("12.174.133-k") == "12174133K"
    assert clean_rut("111111111") == "111111111"


@pytest.mark.parametrize("raw, expected", [
    ("111111111", "11.111.111-1"),
    ("11111111-1", "11.111.111-1"),
    ("12345678", "1.234.567-8"),
    ("12174133K", "12.174.133-K"),
    ("12174133k", "12.174.133-K"),
    ("12", "1-2"),
])
def test_format_rut(raw, expected):
    assert format_rut(raw) == expected


def test_format_short_input_is_unchanged():
    assert format_rut("1") == "1"
    assert format_rut("") == ""


@pytest.mark.parametrize("rut", VALID_RUTS + ["12345678", "99", "1234"])
def test_format_is_idempotent(rut):
    once = format_rut(rut)
    assert format_rut(once) == once


@pytest.mark.parametrize("rut", VALID_RUTS + ["11.111.111-2", "123456789"])
def test_formatting_preserves_validity(rut):
    assert validate_rut(format_rut(rut)) == validate_rut(rut)
