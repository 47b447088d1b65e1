"""
Registration number rules.

A registration number is the applicant-chosen second verification factor:
`REG-` followed by exactly six digits. Both sides of every comparison go
through the same normalization exactly once.
"""

import re

from .errors import MissingFieldError, RegistrationFormatError


REGISTRATION_PATTERN = re.compile(r"^REG-\d{6}$")


def normalize_registration_number(value: str) -> str:
    """
    Canonical form used for validation and comparison.

    Trims whitespace, upper-cases, and turns underscores into hyphens in a
    single pass. The result is a fixed point: normalizing it again is a no-op.

    >>> normalize_registration_number("  reg_000123 ")
    'REG-000123'
    """
    return value.strip().upper().replace("_", "-")


def is_valid_registration_number(value: str) -> bool:
    """Check an already-normalized value against the REG-XXXXXX format."""
    return REGISTRATION_PATTERN.fullmatch(value) is not None


def validate_registration_number(value: str | None) -> str:
    """
    Normalize and validate applicant or verifier input.

    Returns:
        The normalized registration number

    Raises:
        MissingFieldError: If the value is empty
        RegistrationFormatError: If it does not match REG- plus 6 digits
    """
    if value is None or not value.strip():
        raise MissingFieldError("registration_number")

    normalized = normalize_registration_number(value)
    if not is_valid_registration_number(normalized):
        raise RegistrationFormatError(value)
    return normalized


def registration_numbers_match(stored: str, candidate: str) -> bool:
    """Full-string equality after normalizing both sides."""
    return normalize_registration_number(stored) == normalize_registration_number(candidate)
