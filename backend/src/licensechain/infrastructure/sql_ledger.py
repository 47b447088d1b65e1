"""
Ledger gateway backed by a SQL database.

A self-hosted stand-in for the registry contract: an append-only table
with the contract's write rules (sequential ids, caller recorded as
applicant, approval stamps issue and expiry, wrong-state transitions
revert). Status changes are compare-and-set UPDATEs, and duplicate
registration numbers are refused by a unique index when the ledger
enforces uniqueness, so both checks hold under concurrent writers.
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from licensechain.domain.codec import (
    SCHEMA_V2,
    RawRecord,
    RawSubmission,
    RecordSchema,
    decode_submission,
    empty_record,
    timestamp_to_ledger,
)
from licensechain.domain.errors import (
    DuplicateRegistrationRejected,
    LedgerRejectedError,
)
from licensechain.domain.lifecycle import LicenseAction
from licensechain.domain.models import LicenseStatus
from licensechain.domain.registration import normalize_registration_number
from licensechain.services.ledger import (
    Clock,
    FinalizedTransaction,
    LedgerGateway,
    TransactionHandle,
    approval_window,
    ledger_transition,
    utc_now,
)

from .database import LicenseRow

logger = logging.getLogger(__name__)


def row_to_raw(row: LicenseRow, schema: RecordSchema = SCHEMA_V2) -> tuple:
    """Positional record in the given schema's field order."""
    return tuple(getattr(row, name) for name in schema.fields)


class SqlLedgerGateway(LedgerGateway):
    """
    LedgerGateway over an async SQLAlchemy session factory.

    Example:
        engine = create_async_engine("sqlite+aiosqlite:///ledger.db")
        await init_db(engine)
        ledger = SqlLedgerGateway(create_session_factory(engine))
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        administrator: str | None = None,
        enforce_uniqueness: bool = False,
        reuse_revoked_numbers: bool = True,
        validity_days: int = 365,
        schema: RecordSchema = SCHEMA_V2,
        clock: Clock = utc_now,
    ) -> None:
        self.session_factory = session_factory
        self.administrator = administrator
        self.enforces_uniqueness = enforce_uniqueness
        self.reuse_revoked_numbers = reuse_revoked_numbers
        self.validity_days = validity_days
        self.schema = schema
        self.clock = clock

    async def count(self) -> int:
        async with self.session_factory() as session:
            try:
                result = await session.execute(select(func.count(LicenseRow.id)))
            except OperationalError as e:
                raise ConnectionError(str(e)) from e
            return int(result.scalar_one())

    async def get(self, license_id: int) -> RawRecord:
        async with self.session_factory() as session:
            try:
                row = await session.get(LicenseRow, license_id)
            except OperationalError as e:
                raise ConnectionError(str(e)) from e
            if row is None:
                return empty_record(self.schema)
            return row_to_raw(row, self.schema)

    async def submit(self, submission: RawSubmission, *, sender: str) -> TransactionHandle:
        fields = decode_submission(submission)
        live_number = None
        if self.enforces_uniqueness:
            live_number = normalize_registration_number(fields.registration_number)

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    row = LicenseRow(
                        business_name=fields.business_name,
                        registration_number=fields.registration_number,
                        email=fields.email,
                        premise_address=fields.premise_address,
                        audit_description=fields.audit_description,
                        business_type=fields.business_type,
                        business_sector=fields.business_sector,
                        document_reference=fields.document_reference,
                        applicant_identity=sender,
                        submitted_at=timestamp_to_ledger(self.clock()),
                        issued_at=0,
                        expires_at=0,
                        status=LicenseStatus.PENDING.value,
                        live_registration_number=live_number,
                    )
                    session.add(row)
                    await session.flush()
                    license_id = row.id
            except IntegrityError as e:
                if live_number is None:
                    raise
                existing_id = await self._live_holder(session, live_number)
                raise DuplicateRegistrationRejected(fields.registration_number, existing_id) from e
            except OperationalError as e:
                raise ConnectionError(str(e)) from e

        logger.info(f"SQL ledger stored license #{license_id}")
        return FinalizedTransaction("submit", license_id)

    async def _live_holder(self, session: AsyncSession, live_number: str) -> int | None:
        result = await session.execute(
            select(LicenseRow.id).where(LicenseRow.live_registration_number == live_number)
        )
        return result.scalar_one_or_none()

    async def approve(self, license_id: int, *, sender: str) -> TransactionHandle:
        return await self._transition(license_id, LicenseAction.APPROVE, sender)

    async def reject(self, license_id: int, *, sender: str) -> TransactionHandle:
        return await self._transition(license_id, LicenseAction.REJECT, sender)

    async def revoke(self, license_id: int, *, sender: str) -> TransactionHandle:
        return await self._transition(license_id, LicenseAction.REVOKE, sender)

    async def _transition(
        self,
        license_id: int,
        action: LicenseAction,
        sender: str,
    ) -> TransactionHandle:
        """
        Apply `action` as a compare-and-set on the record's status.

        The UPDATE only matches while the row still holds the status that was
        checked, so of two concurrent writers on one record exactly one wins
        and the other reverts.
        """
        if self.administrator and sender.lower() != self.administrator.lower():
            raise LedgerRejectedError(action.value, "sender is not the administrator")

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    row = await session.get(LicenseRow, license_id, with_for_update=True)
                    if row is None:
                        raise LedgerRejectedError(
                            action.value, f"license #{license_id} does not exist"
                        )

                    source = LicenseStatus(row.status)
                    target = ledger_transition(license_id, source, action)
                    values: dict = {"status": target.value}
                    if action is LicenseAction.APPROVE:
                        issued_at, expires_at = approval_window(self.clock(), self.validity_days)
                        values["issued_at"] = timestamp_to_ledger(issued_at)
                        values["expires_at"] = timestamp_to_ledger(expires_at)
                    if target is LicenseStatus.REVOKED and self.reuse_revoked_numbers:
                        values["live_registration_number"] = None

                    result = await session.execute(
                        update(LicenseRow)
                        .where(LicenseRow.id == license_id, LicenseRow.status == source.value)
                        .values(**values)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        raise LedgerRejectedError(
                            action.value,
                            f"license #{license_id} is no longer {source.value}",
                        )
            except OperationalError as e:
                raise ConnectionError(str(e)) from e
            except SQLAlchemyError:
                logger.exception(f"SQL ledger {action.value} failed for #{license_id}")
                raise

        return FinalizedTransaction(action.value, license_id)
