"""
Ledger gateway: typed access to the external license ledger.

Handles:
- The consumed capability set (count, get, submit, approve, reject, revoke)
- Transaction handles and waiting for finality
- Time-bounded, cancelable round trips with error translation
- An in-memory ledger reproducing the registry contract for tests and
  local development

The gateway owns no record state; every read is a fresh round trip.
"""

import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from licensechain.domain.codec import (
    SCHEMA_V2,
    RawRecord,
    RawSubmission,
    RecordSchema,
    decode_record,
    decode_submission,
    empty_record,
    encode_record,
    encode_submission,
)
from licensechain.domain.errors import (
    DuplicateRegistrationRejected,
    LedgerRejectedError,
    LedgerUnavailableError,
    LicenseChainError,
)
from licensechain.domain.lifecycle import LicenseAction, next_status
from licensechain.domain.models import LicenseRecord, LicenseStatus, SubmissionFields
from licensechain.domain.registration import normalize_registration_number

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_transaction_hash() -> str:
    return "0x" + secrets.token_hex(32)


@dataclass(frozen=True)
class TransactionReceipt:
    """Proof that a write reached finality on the ledger."""
    tx_hash: str
    operation: str
    license_id: int


class TransactionHandle(ABC):
    """A submitted write whose finality can be awaited."""

    tx_hash: str

    @abstractmethod
    async def wait(self) -> TransactionReceipt:
        """Block until the write is final. Reverts surface here as errors."""


class FinalizedTransaction(TransactionHandle):
    """Handle for ledgers that execute writes synchronously."""

    def __init__(self, operation: str, license_id: int, tx_hash: str | None = None) -> None:
        self.operation = operation
        self.license_id = license_id
        self.tx_hash = tx_hash or new_transaction_hash()

    async def wait(self) -> TransactionReceipt:
        return TransactionReceipt(
            tx_hash=self.tx_hash,
            operation=self.operation,
            license_id=self.license_id,
        )


class LedgerGateway(ABC):
    """
    Capability set consumed from the license ledger.

    Writes are signed by `sender`; the ledger records it as the applicant
    on submission. Reading an id that does not exist returns the all-zero
    record, whose id field is 0.
    """

    # When True the ledger itself reverts duplicate registration numbers
    # atomically, so the pre-write scan can be skipped.
    enforces_uniqueness: bool = False

    @abstractmethod
    async def count(self) -> int:
        """Total records ever created."""

    @abstractmethod
    async def get(self, license_id: int) -> RawRecord:
        """Fetch one positional record."""

    @abstractmethod
    async def submit(self, submission: RawSubmission, *, sender: str) -> TransactionHandle:
        """Create a Pending record."""

    @abstractmethod
    async def approve(self, license_id: int, *, sender: str) -> TransactionHandle:
        """Approve a Pending record; the ledger stamps issue and expiry dates."""

    @abstractmethod
    async def reject(self, license_id: int, *, sender: str) -> TransactionHandle:
        """Reject a Pending record."""

    @abstractmethod
    async def revoke(self, license_id: int, *, sender: str) -> TransactionHandle:
        """Revoke an Approved record."""

    async def close(self) -> None:
        """Release transport resources."""


class LedgerClient:
    """
    Time-bounded access to a LedgerGateway in terms of typed records.

    Every call is wrapped in a timeout. Timeouts and transport failures
    become LedgerUnavailableError; writes that may already have been
    accepted are flagged `outcome_unknown`. Cancellation by the caller
    propagates untouched.
    """

    def __init__(self, gateway: LedgerGateway, timeout_seconds: float = 30.0) -> None:
        self.gateway = gateway
        self.timeout = timeout_seconds

    @property
    def enforces_uniqueness(self) -> bool:
        return self.gateway.enforces_uniqueness

    async def _call(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        outcome_unknown: bool = False,
    ) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=self.timeout)
        except LicenseChainError:
            raise
        except TimeoutError:
            logger.warning(f"Ledger {operation} timed out after {self.timeout}s")
            raise LedgerUnavailableError(
                operation, f"timed out after {self.timeout}s", outcome_unknown
            ) from None
        except (ConnectionError, OSError) as e:
            logger.warning(f"Ledger {operation} failed: {e}")
            raise LedgerUnavailableError(operation, str(e), outcome_unknown) from e

    async def count(self) -> int:
        return int(await self._call("count", self.gateway.count))

    async def fetch(self, license_id: int) -> LicenseRecord | None:
        """Decoded record, or None when the ledger has no such id."""
        if license_id <= 0:
            return None
        raw = await self._call("get", lambda: self.gateway.get(license_id))
        return decode_record(raw)

    async def scan(self, descending: bool = False) -> AsyncIterator[LicenseRecord]:
        """
        Yield every record on the ledger, one round trip each.

        Ascending id order by default; ids that come back empty are skipped.
        """
        total = await self.count()
        ids = range(total, 0, -1) if descending else range(1, total + 1)
        for license_id in ids:
            record = await self.fetch(license_id)
            if record is not None:
                yield record

    async def submit(self, fields: SubmissionFields, sender: str) -> TransactionReceipt:
        raw = encode_submission(fields)
        handle = await self._call(
            "submit",
            lambda: self.gateway.submit(raw, sender=sender),
            outcome_unknown=True,
        )
        logger.info(f"Submission sent: tx={handle.tx_hash}")
        return await self._call("submit.wait", handle.wait, outcome_unknown=True)

    async def transition(
        self,
        license_id: int,
        action: LicenseAction,
        sender: str,
    ) -> TransactionReceipt:
        method = {
            LicenseAction.APPROVE: self.gateway.approve,
            LicenseAction.REJECT: self.gateway.reject,
            LicenseAction.REVOKE: self.gateway.revoke,
        }[action]
        handle = await self._call(
            action.value,
            lambda: method(license_id, sender=sender),
            outcome_unknown=True,
        )
        logger.info(f"{action.value} sent for #{license_id}: tx={handle.tx_hash}")
        return await self._call(f"{action.value}.wait", handle.wait, outcome_unknown=True)


def approval_window(now: datetime, validity_days: int) -> tuple[datetime, datetime]:
    """Issue and expiry dates a self-hosted ledger stamps on approval."""
    issued_at = now.replace(microsecond=0)
    return issued_at, issued_at + timedelta(days=validity_days)


def ledger_transition(
    license_id: int,
    status: LicenseStatus,
    action: LicenseAction,
) -> LicenseStatus:
    """
    Contract-side guard: revert transitions from the wrong state.

    Raises:
        LedgerRejectedError: If the transition is not legal
    """
    target = next_status(status, action)
    if target is None:
        raise LedgerRejectedError(
            action.value, f"license #{license_id} is {status.value}"
        )
    return target


class InMemoryLedger(LedgerGateway):
    """
    Process-local ledger with the registry contract's semantics.

    Ids start at 1, writes are serialized, approval stamps issue and
    expiry dates, transitions from the wrong state revert, and unknown
    ids read back as the all-zero record.

    Example:
        ledger = InMemoryLedger(administrator="0xAdmin...")
        handle = await ledger.submit(encode_submission(fields), sender="0xApplicant...")
        receipt = await handle.wait()
    """

    def __init__(
        self,
        administrator: str | None = None,
        enforce_uniqueness: bool = False,
        reuse_revoked_numbers: bool = True,
        validity_days: int = 365,
        schema: RecordSchema = SCHEMA_V2,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize the ledger.

        Args:
            administrator: If set, only this identity may run transitions
            enforce_uniqueness: Revert duplicate registration numbers on submit
            reuse_revoked_numbers: Revoked records free their number (uniqueness only)
            validity_days: Expiry window stamped on approval
            schema: Positional layout returned by `get`
            clock: Source of the current time
        """
        self.administrator = administrator
        self.enforces_uniqueness = enforce_uniqueness
        self.reuse_revoked_numbers = reuse_revoked_numbers
        self.validity_days = validity_days
        self.schema = schema
        self.clock = clock
        self._records: list[LicenseRecord] = []
        self._lock = asyncio.Lock()

    async def count(self) -> int:
        return len(self._records)

    async def get(self, license_id: int) -> RawRecord:
        if 1 <= license_id <= len(self._records):
            return encode_record(self._records[license_id - 1], self.schema)
        return empty_record(self.schema)

    async def submit(self, submission: RawSubmission, *, sender: str) -> TransactionHandle:
        fields = decode_submission(submission)
        async with self._lock:
            if self.enforces_uniqueness:
                self._check_unique(fields.registration_number)
            record = LicenseRecord(
                id=len(self._records) + 1,
                business_name=fields.business_name,
                registration_number=fields.registration_number,
                email=fields.email,
                premise_address=fields.premise_address,
                audit_description=fields.audit_description,
                business_type=fields.business_type,
                business_sector=fields.business_sector,
                document_reference=fields.document_reference,
                applicant_identity=sender,
                status=LicenseStatus.PENDING,
                submitted_at=self.clock().replace(microsecond=0),
            )
            self._records.append(record)
        return FinalizedTransaction("submit", record.id)

    def _check_unique(self, registration_number: str) -> None:
        wanted = normalize_registration_number(registration_number)
        for record in self._records:
            if self.reuse_revoked_numbers and record.status is LicenseStatus.REVOKED:
                continue
            if normalize_registration_number(record.registration_number) == wanted:
                raise DuplicateRegistrationRejected(registration_number, record.id)

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
        async with self._lock:
            if self.administrator and sender.lower() != self.administrator.lower():
                raise LedgerRejectedError(action.value, "sender is not the administrator")
            if not 1 <= license_id <= len(self._records):
                raise LedgerRejectedError(action.value, f"license #{license_id} does not exist")

            record = self._records[license_id - 1]
            target = ledger_transition(license_id, record.status, action)
            changes: dict = {"status": target}
            if action is LicenseAction.APPROVE:
                changes["issued_at"], changes["expires_at"] = approval_window(
                    self.clock(), self.validity_days
                )
            self._records[license_id - 1] = replace(record, **changes)
        return FinalizedTransaction(action.value, license_id)
