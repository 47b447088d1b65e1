"""Ledger client and the in-memory ledger."""

import asyncio
from datetime import timedelta

import pytest

from licensechain.domain.codec import SCHEMA_V1, encode_submission
from licensechain.domain.errors import (
    DuplicateRegistrationRejected,
    LedgerRejectedError,
    LedgerUnavailableError,
)
from licensechain.domain.lifecycle import LicenseAction
from licensechain.domain.models import LicenseStatus
from licensechain.services.ledger import InMemoryLedger, LedgerClient

from conftest import ADMIN, APPLICANT, START, STRANGER, make_fields


class SlowLedger(InMemoryLedger):
    """Never answers within the client's timeout."""

    async def count(self) -> int:
        await asyncio.sleep(10)
        return 0

    async def submit(self, submission, *, sender):
        await asyncio.sleep(10)


class BrokenLedger(InMemoryLedger):
    async def get(self, license_id):
        raise ConnectionError("connection refused")


class TestInMemoryLedger:
    async def test_ids_start_at_one(self, ledger, fields):
        first = await ledger.submit(fields, sender=APPLICANT)
        second = await ledger.submit(make_fields("REG-000002"), sender=APPLICANT)

        assert first.license_id == 1
        assert second.license_id == 2
        assert await ledger.count() == 2

    async def test_submit_records_sender_and_time(self, ledger, fields):
        receipt = await ledger.submit(fields, sender=APPLICANT)
        record = await ledger.fetch(receipt.license_id)

        assert record.applicant_identity == APPLICANT
        assert record.status is LicenseStatus.PENDING
        assert record.submitted_at == START
        assert record.issued_at is None
        assert record.expires_at is None

    async def test_approval_stamps_validity_window(self, ledger, fields):
        receipt = await ledger.submit(fields, sender=APPLICANT)
        await ledger.transition(receipt.license_id, LicenseAction.APPROVE, sender=ADMIN)
        record = await ledger.fetch(receipt.license_id)

        assert record.status is LicenseStatus.APPROVED
        assert record.issued_at == START
        assert record.expires_at == START + timedelta(days=365)

    async def test_unknown_id_reads_as_missing(self, ledger):
        assert await ledger.fetch(1) is None
        assert await ledger.fetch(0) is None
        assert await ledger.fetch(-3) is None

    async def test_wrong_state_transition_reverts(self, ledger, fields):
        receipt = await ledger.submit(fields, sender=APPLICANT)
        with pytest.raises(LedgerRejectedError):
            await ledger.transition(receipt.license_id, LicenseAction.REVOKE, sender=ADMIN)

    async def test_non_administrator_transition_reverts(self, ledger, fields):
        receipt = await ledger.submit(fields, sender=APPLICANT)
        with pytest.raises(LedgerRejectedError):
            await ledger.transition(receipt.license_id, LicenseAction.APPROVE, sender=STRANGER)

        record = await ledger.fetch(receipt.license_id)
        assert record.status is LicenseStatus.PENDING

    async def test_v1_layout(self, clock, fields):
        client = LedgerClient(InMemoryLedger(schema=SCHEMA_V1, clock=clock))
        receipt = await client.submit(fields, sender=APPLICANT)
        record = await client.fetch(receipt.license_id)

        # v1 carries no submission time
        assert record.submitted_at is None
        assert record.registration_number == "REG-123456"

    async def test_enforced_uniqueness(self, clock, fields):
        gateway = InMemoryLedger(enforce_uniqueness=True, clock=clock)
        await gateway.submit(encode_submission(fields), sender=APPLICANT)

        with pytest.raises(DuplicateRegistrationRejected) as exc_info:
            await gateway.submit(
                encode_submission(make_fields("reg_123456")), sender=STRANGER
            )
        assert exc_info.value.existing_id == 1

    async def test_scan_order(self, ledger):
        for number in ("REG-000001", "REG-000002", "REG-000003"):
            await ledger.submit(make_fields(number), sender=APPLICANT)

        ascending = [r.id async for r in ledger.scan()]
        descending = [r.id async for r in ledger.scan(descending=True)]

        assert ascending == [1, 2, 3]
        assert descending == [3, 2, 1]


class TestLedgerClientFailures:
    async def test_read_timeout_is_unavailable(self):
        client = LedgerClient(SlowLedger(), timeout_seconds=0.01)

        with pytest.raises(LedgerUnavailableError) as exc_info:
            await client.count()
        assert exc_info.value.operation == "count"
        assert exc_info.value.outcome_unknown is False

    async def test_write_timeout_has_unknown_outcome(self, fields):
        client = LedgerClient(SlowLedger(), timeout_seconds=0.01)

        with pytest.raises(LedgerUnavailableError) as exc_info:
            await client.submit(fields, sender=APPLICANT)
        assert exc_info.value.outcome_unknown is True

    async def test_transport_failure_is_unavailable(self):
        client = LedgerClient(BrokenLedger())

        with pytest.raises(LedgerUnavailableError) as exc_info:
            await client.fetch(1)
        assert "connection refused" in exc_info.value.reason

    async def test_cancellation_propagates(self):
        client = LedgerClient(SlowLedger(), timeout_seconds=30)
        task = asyncio.create_task(client.count())
        await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
