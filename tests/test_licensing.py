"""License submission, administration and listings."""

import pytest

from licensechain.domain.errors import (
    InvalidTransitionError,
    LicenseNotFoundError,
    MissingFieldError,
    RegistrationFormatError,
    UnauthorizedError,
)
from licensechain.domain.models import LicenseStatus

from conftest import ADMIN, APPLICANT, STRANGER, make_fields


async def test_submit_approve_verify(service, engine, fields):
    record = await service.submit(fields, APPLICANT)
    assert record.id == 1
    assert record.status is LicenseStatus.PENDING
    assert record.applicant_identity == APPLICANT

    with pytest.raises(UnauthorizedError):
        await service.approve(record.id, STRANGER)
    assert (await service.get(record.id)).status is LicenseStatus.PENDING

    approved = await service.approve(record.id, ADMIN)
    assert approved.status is LicenseStatus.APPROVED
    assert approved.issued_at is not None
    assert approved.expires_at > approved.issued_at

    result = await engine.verify("1", "reg-123456")
    assert result.is_active


async def test_submit_stores_normalized_number(service):
    record = await service.submit(make_fields(" reg_111222 "), APPLICANT)
    assert record.registration_number == "REG-111222"


async def test_submit_rejects_bad_number_without_writing(service, ledger):
    with pytest.raises(RegistrationFormatError):
        await service.submit(make_fields("REG-1"), APPLICANT)
    assert await ledger.count() == 0


async def test_submit_requires_applicant(service, fields):
    with pytest.raises(MissingFieldError):
        await service.submit(fields, "  ")


async def test_submit_application(service, form):
    record = await service.submit_application(form, APPLICANT, "sha256:" + "a" * 64 + ".pdf")

    assert record.registration_number == "REG-123456"
    assert record.premise_address == "12 Mill Road, Pune, MH"
    assert record.audit_description.startswith("Owner: Asha Rao | PAN: ABCDE1234F")
    assert record.document_reference.endswith(".pdf")


async def test_approve_twice(service, fields):
    record = await service.submit(fields, APPLICANT)
    await service.approve(record.id, ADMIN)

    with pytest.raises(InvalidTransitionError) as exc_info:
        await service.approve(record.id, ADMIN)
    assert exc_info.value.current_status == "Approved"


async def test_rejected_is_terminal(service, fields):
    record = await service.submit(fields, APPLICANT)
    rejected = await service.reject(record.id, ADMIN)
    assert rejected.status is LicenseStatus.REJECTED
    assert rejected.issued_at is None

    for action in (service.approve, service.revoke, service.reject):
        with pytest.raises(InvalidTransitionError):
            await action(record.id, ADMIN)


async def test_revoke_requires_approval(service, fields):
    record = await service.submit(fields, APPLICANT)
    with pytest.raises(InvalidTransitionError):
        await service.revoke(record.id, ADMIN)


async def test_revoke_keeps_dates(service, fields):
    record = await service.submit(fields, APPLICANT)
    approved = await service.approve(record.id, ADMIN)
    revoked = await service.revoke(record.id, ADMIN)

    assert revoked.status is LicenseStatus.REVOKED
    assert revoked.issued_at == approved.issued_at
    assert revoked.expires_at == approved.expires_at


async def test_transition_unknown_license(service):
    with pytest.raises(LicenseNotFoundError):
        await service.approve(42, ADMIN)


async def test_unauthorized_checked_before_lookup(service):
    with pytest.raises(UnauthorizedError):
        await service.approve(42, STRANGER)


async def test_list_for_applicant(service):
    await service.submit(make_fields("REG-000001"), APPLICANT)
    await service.submit(make_fields("REG-000002"), STRANGER)
    await service.submit(make_fields("REG-000003"), APPLICANT)

    records = await service.list_for_applicant(APPLICANT.upper())

    assert [r.id for r in records] == [3, 1]


class TestRegistryOverview:
    @pytest.fixture
    async def registry(self, service):
        pending = await service.submit(make_fields("REG-000001", business_name="Acme Bakery"), APPLICANT)
        approved = await service.submit(make_fields("REG-000002", business_name="Blue Cafe"), APPLICANT)
        rejected = await service.submit(make_fields("REG-000003", business_name="Corner Shop"), STRANGER)
        revoked = await service.submit(make_fields("REG-000004", business_name="Dock Works"), STRANGER)
        await service.approve(approved.id, ADMIN)
        await service.reject(rejected.id, ADMIN)
        await service.approve(revoked.id, ADMIN)
        await service.revoke(revoked.id, ADMIN)
        return pending, approved, rejected, revoked

    async def test_requires_administrator(self, service, registry):
        with pytest.raises(UnauthorizedError):
            await service.registry_overview(APPLICANT)

    async def test_stats_cover_everything(self, service, registry):
        overview = await service.registry_overview(ADMIN, query="nothing matches")

        assert overview.records == []
        assert overview.stats.pending == 1
        assert overview.stats.approved == 1
        assert overview.stats.rejected == 1
        assert overview.stats.revoked == 1
        assert overview.stats.total == 4

    async def test_revoked_hidden_by_default(self, service, registry):
        overview = await service.registry_overview(ADMIN)
        assert [r.id for r in overview.records] == [3, 2, 1]

    async def test_include_revoked(self, service, registry):
        overview = await service.registry_overview(ADMIN, include_revoked=True)
        assert [r.id for r in overview.records] == [4, 3, 2, 1]

    async def test_status_filter(self, service, registry):
        overview = await service.registry_overview(ADMIN, status=LicenseStatus.REVOKED)
        assert [r.id for r in overview.records] == [4]

    async def test_search(self, service, registry):
        by_name = await service.registry_overview(ADMIN, query="blue")
        by_number = await service.registry_overview(ADMIN, query="reg-000003")

        assert [r.id for r in by_name.records] == [2]
        assert [r.id for r in by_number.records] == [3]
