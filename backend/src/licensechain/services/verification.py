"""
Two-factor license verification.

A license is looked up by its identity number (small, sequential and
therefore guessable) and only disclosed when the caller also knows the
matching registration number.

Order of checks:
1. Both inputs present
2. Registration number format (after normalization)
3. Record exists
4. Registration number matches the record
5. Expiry and activity evaluated against the current time
"""

import logging
from datetime import datetime

from licensechain.domain.errors import (
    IdentityFormatError,
    LicenseNotFoundError,
    MissingFieldError,
    SecurityMismatchError,
)
from licensechain.domain.models import VerificationResult
from licensechain.domain.registration import (
    registration_numbers_match,
    validate_registration_number,
)

from .ledger import Clock, LedgerClient, utc_now

logger = logging.getLogger(__name__)


def parse_identity_id(identity_id: int | str | None) -> int:
    """
    Parse a license identity number from user input.

    Raises:
        MissingFieldError: If empty
        IdentityFormatError: If not a non-negative integer
    """
    if identity_id is None:
        raise MissingFieldError("identity_id")
    if isinstance(identity_id, bool):
        raise IdentityFormatError(str(identity_id))
    if isinstance(identity_id, int):
        if identity_id < 0:
            raise IdentityFormatError(str(identity_id))
        return identity_id

    text = identity_id.strip().lstrip("#")
    if not text:
        raise MissingFieldError("identity_id")
    if not text.isdigit():
        raise IdentityFormatError(identity_id)
    return int(text)


class VerificationEngine:
    """
    Answers "is this credential currently valid and does it belong together".

    Example:
        engine = VerificationEngine(LedgerClient(gateway))
        result = await engine.verify("4", "reg-123456")
        if result.is_active:
            ...
    """

    def __init__(self, ledger: LedgerClient, clock: Clock = utc_now) -> None:
        self.ledger = ledger
        self.clock = clock

    async def verify(
        self,
        identity_id: int | str | None,
        registration_number: str | None,
    ) -> VerificationResult:
        """
        Verify a license by identity number and registration number.

        Raises:
            MissingFieldError: If either input is empty
            IdentityFormatError: If the identity number is not an integer
            RegistrationFormatError: If the registration number is malformed
            LicenseNotFoundError: If no record has that identity number
            SecurityMismatchError: If the registration number does not match
        """
        # Presence first, for both fields, before any format check
        if identity_id is None or (isinstance(identity_id, str) and not identity_id.strip()):
            raise MissingFieldError("identity_id")
        if registration_number is None or not registration_number.strip():
            raise MissingFieldError("registration_number")

        normalized = validate_registration_number(registration_number)
        license_id = parse_identity_id(identity_id)

        record = await self.ledger.fetch(license_id)
        if record is None:
            logger.info(f"Verification for unknown license #{license_id}")
            raise LicenseNotFoundError(license_id)

        if not registration_numbers_match(record.registration_number, normalized):
            logger.warning(f"Registration number mismatch for license #{license_id}")
            raise SecurityMismatchError(license_id)

        now: datetime = self.clock()
        is_expired = record.is_expired(now)
        return VerificationResult(
            record=record,
            is_active=record.is_active(now),
            is_expired=is_expired,
            checked_at=now,
        )
