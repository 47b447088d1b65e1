"""
License service orchestrator.

Coordinates the three request flows:
1. Submission: validation -> uniqueness guard -> codec -> ledger write
2. Administration: authorization gate -> state machine -> ledger write
3. Listings for applicants and the registry administrator

No record state is held between calls; every operation re-reads the
ledger.
"""

import logging
from dataclasses import replace

from licensechain.domain.application import compose_submission
from licensechain.domain.authorization import AuthorizationGate
from licensechain.domain.errors import (
    DuplicateRegistrationRejected,
    LicenseNotFoundError,
    MissingFieldError,
    RegistrationConflictError,
)
from licensechain.domain.lifecycle import LicenseAction, check_transition
from licensechain.domain.models import (
    ApplicationForm,
    LicenseRecord,
    LicenseStatus,
    RegistryOverview,
    SubmissionFields,
)
from licensechain.domain.registration import validate_registration_number

from .ledger import LedgerClient
from .uniqueness import UniquenessGuard

logger = logging.getLogger(__name__)


class LicenseService:
    """
    Primary interface for license submission and administration.

    Example:
        service = LicenseService(
            ledger=LedgerClient(InMemoryLedger()),
            gate=AuthorizationGate("0xAdmin..."),
        )

        record = await service.submit(fields, applicant="0xApplicant...")
        record = await service.approve(record.id, caller="0xAdmin...")
    """

    def __init__(
        self,
        ledger: LedgerClient,
        gate: AuthorizationGate,
        guard: UniquenessGuard | None = None,
    ) -> None:
        self.ledger = ledger
        self.gate = gate
        self.guard = guard or UniquenessGuard(ledger)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, fields: SubmissionFields, applicant: str) -> LicenseRecord:
        """
        Create a Pending license record owned by `applicant`.

        The registration number is stored in normalized form.

        Raises:
            MissingFieldError: If the applicant identity is empty
            RegistrationFormatError: If the registration number is malformed
            RegistrationConflictError: If the number is held by a live record,
                either found by the pre-check or reported by the ledger
        """
        if not applicant or not applicant.strip():
            raise MissingFieldError("applicant_identity")

        normalized = validate_registration_number(fields.registration_number)
        if normalized != fields.registration_number:
            fields = replace(fields, registration_number=normalized)

        await self.guard.check_available(normalized)

        try:
            receipt = await self.ledger.submit(fields, sender=applicant.strip())
        except DuplicateRegistrationRejected as e:
            logger.warning(f"Ledger reported duplicate registration number {normalized}")
            raise RegistrationConflictError(normalized, e.existing_id) from e

        logger.info(f"License #{receipt.license_id} submitted by {applicant} ({normalized})")
        return await self.get(receipt.license_id)

    async def submit_application(
        self,
        form: ApplicationForm,
        applicant: str,
        document_reference: str = "",
    ) -> LicenseRecord:
        """Compose a submission from the application form and submit it."""
        return await self.submit(compose_submission(form, document_reference), applicant)

    # ------------------------------------------------------------------
    # Administrative transitions
    # ------------------------------------------------------------------

    async def approve(self, license_id: int, caller: str) -> LicenseRecord:
        return await self._transition(license_id, LicenseAction.APPROVE, caller)

    async def reject(self, license_id: int, caller: str) -> LicenseRecord:
        return await self._transition(license_id, LicenseAction.REJECT, caller)

    async def revoke(self, license_id: int, caller: str) -> LicenseRecord:
        return await self._transition(license_id, LicenseAction.REVOKE, caller)

    async def _transition(
        self,
        license_id: int,
        action: LicenseAction,
        caller: str,
    ) -> LicenseRecord:
        """
        Authorize, check preconditions, write, then read the result back.

        Raises:
            UnauthorizedError: If the caller is not the administrator
            LicenseNotFoundError: If the record does not exist
            InvalidTransitionError: If the record is in the wrong state
        """
        self.gate.require_administrator(caller)

        record = await self.get(license_id)
        target = check_transition(record, action)

        await self.ledger.transition(license_id, action, sender=caller.strip())
        logger.info(
            f"License #{license_id}: {record.status.value} -> {target.value} "
            f"({action.value} by {caller})"
        )
        return await self.get(license_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, license_id: int) -> LicenseRecord:
        record = await self.ledger.fetch(license_id)
        if record is None:
            raise LicenseNotFoundError(license_id)
        return record

    def is_administrator(self, caller: str | None) -> bool:
        return self.gate.is_administrator(caller)

    async def list_for_applicant(self, applicant: str) -> list[LicenseRecord]:
        """Every record submitted by `applicant`, newest first."""
        if not applicant or not applicant.strip():
            raise MissingFieldError("applicant_identity")
        return [
            record
            async for record in self.ledger.scan(descending=True)
            if record.belongs_to(applicant)
        ]

    async def registry_overview(
        self,
        caller: str,
        status: LicenseStatus | None = None,
        query: str | None = None,
        include_revoked: bool = False,
    ) -> RegistryOverview:
        """
        Administrator view: filtered records newest first plus status counts.

        Counts always cover the whole ledger; `status`, `query` and
        `include_revoked` only narrow the listed records.

        Raises:
            UnauthorizedError: If the caller is not the administrator
        """
        self.gate.require_administrator(caller)

        needle = (query or "").strip().lower()
        overview = RegistryOverview()
        async for record in self.ledger.scan(descending=True):
            overview.stats.count(record.status)

            # Revoked records stay hidden unless asked for explicitly
            hidden = record.status is LicenseStatus.REVOKED and not include_revoked
            if status is None and hidden:
                continue
            if status is not None and record.status is not status:
                continue
            if needle and not (
                needle in record.business_name.lower()
                or needle in record.registration_number.lower()
            ):
                continue
            overview.records.append(record)
        return overview
