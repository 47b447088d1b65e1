"""
Uniqueness guard for registration numbers.

Scans the ledger before a submission is written and refuses a number
that is already held by a live record. The scan is a best-effort
pre-check: two concurrent submissions can both pass it before either
write lands, and the ledger write stays the only serialization point.
"""

import logging

from licensechain.domain.errors import RegistrationConflictError
from licensechain.domain.models import LicenseStatus
from licensechain.domain.registration import normalize_registration_number

from .ledger import LedgerClient

logger = logging.getLogger(__name__)


class UniquenessGuard:
    """
    Enforces at most one live record per registration number.

    With `reuse_revoked_numbers` (the default) a revoked record
    frees its number; otherwise revoked numbers stay retired for good.
    Rejected records always keep blocking their number.
    """

    def __init__(self, ledger: LedgerClient, reuse_revoked_numbers: bool = True) -> None:
        self.ledger = ledger
        self.reuse_revoked_numbers = reuse_revoked_numbers

    def _blocks(self, status: LicenseStatus) -> bool:
        if status is LicenseStatus.REVOKED:
            return not self.reuse_revoked_numbers
        return True

    async def check_available(self, registration_number: str) -> None:
        """
        Raise if the number is taken.

        Skipped entirely when the ledger enforces uniqueness atomically.

        Raises:
            RegistrationConflictError: If a blocking record holds the number
        """
        if self.ledger.enforces_uniqueness:
            logger.debug("Ledger enforces uniqueness, skipping scan")
            return

        wanted = normalize_registration_number(registration_number)
        async for record in self.ledger.scan():
            if not self._blocks(record.status):
                continue
            if normalize_registration_number(record.registration_number) == wanted:
                logger.info(
                    f"Registration number {wanted} already held by #{record.id} "
                    f"({record.status.value})"
                )
                raise RegistrationConflictError(wanted, record.id)
