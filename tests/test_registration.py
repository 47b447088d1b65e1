"""Registration number normalization and format rules."""

import pytest

from licensechain.domain.errors import MissingFieldError, RegistrationFormatError
from licensechain.domain.registration import (
    is_valid_registration_number,
    normalize_registration_number,
    registration_numbers_match,
    validate_registration_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("REG-123456", "REG-123456"),
        ("reg-123456", "REG-123456"),
        ("  reg_123456\t", "REG-123456"),
        ("Reg_12_34", "REG-12-34"),
    ],
)
def test_normalize(raw, expected):
    assert normalize_registration_number(raw) == expected


@pytest.mark.parametrize("raw", ["reg_1_2_3", " REG-000001 ", "x_y", ""])
def test_normalize_is_idempotent(raw):
    once = normalize_registration_number(raw)
    assert normalize_registration_number(once) == once


@pytest.mark.parametrize("value", ["REG-000000", "REG-999999"])
def test_valid_format(value):
    assert is_valid_registration_number(value)


@pytest.mark.parametrize("value", ["REG-12345", "REG-1234567", "REG-12345A", "RGE-123456", "REG123456"])
def test_invalid_format(value):
    assert not is_valid_registration_number(value)


def test_validate_returns_normalized_value():
    assert validate_registration_number(" reg_654321 ") == "REG-654321"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_validate_missing(value):
    with pytest.raises(MissingFieldError) as exc_info:
        validate_registration_number(value)
    assert exc_info.value.field == "registration_number"


def test_validate_bad_format_keeps_raw_input():
    with pytest.raises(RegistrationFormatError) as exc_info:
        validate_registration_number("reg-12")
    assert exc_info.value.value == "reg-12"
    assert exc_info.value.code == "format_error"


def test_match_is_full_string_after_normalization():
    assert registration_numbers_match("REG-123456", "reg_123456")
    assert not registration_numbers_match("REG-123456", "REG-12345")
    assert not registration_numbers_match("REG-123456", "REG-1234567")
