"""Two-factor verification."""

import pytest

from licensechain.domain.errors import (
    IdentityFormatError,
    LicenseNotFoundError,
    MissingFieldError,
    RegistrationFormatError,
    SecurityMismatchError,
)
from licensechain.domain.models import LicenseStatus
from licensechain.services.verification import parse_identity_id

from conftest import ADMIN, APPLICANT, make_fields


@pytest.fixture
async def approved(service, fields):
    record = await service.submit(fields, APPLICANT)
    return await service.approve(record.id, ADMIN)


async def test_active_license(engine, approved, clock):
    result = await engine.verify(str(approved.id), "REG-123456")

    assert result.is_active
    assert not result.is_expired
    assert result.status is LicenseStatus.APPROVED
    assert result.checked_at == clock.now
    assert result.record.business_name == "Acme Bakery"


@pytest.mark.parametrize("registration_number", ["reg-123456", " REG_123456 ", "Reg-123456"])
async def test_casing_and_separator_are_ignored(engine, approved, registration_number):
    result = await engine.verify(approved.id, registration_number)
    assert result.is_active


async def test_hash_prefixed_identity(engine, approved):
    result = await engine.verify(f"#{approved.id}", "REG-123456")
    assert result.record.id == approved.id


async def test_mismatch(engine, approved):
    with pytest.raises(SecurityMismatchError) as exc_info:
        await engine.verify(approved.id, "REG-654321")
    assert exc_info.value.license_id == approved.id


async def test_mismatch_is_full_string(engine, service):
    await service.submit(make_fields("REG-123456"), APPLICANT)
    with pytest.raises(SecurityMismatchError):
        await engine.verify(1, "REG-123450")


@pytest.mark.parametrize("identity_id", ["0", "2", "999"])
async def test_unknown_identity(engine, approved, identity_id):
    with pytest.raises(LicenseNotFoundError):
        await engine.verify(identity_id, "REG-123456")


async def test_expired_approved_license(engine, approved, clock):
    clock.advance(days=366)

    result = await engine.verify(approved.id, "REG-123456")

    assert result.status is LicenseStatus.APPROVED
    assert result.is_expired
    assert not result.is_active


async def test_pending_license_is_not_active(engine, service, fields):
    record = await service.submit(fields, APPLICANT)

    result = await engine.verify(record.id, "REG-123456")

    assert result.status is LicenseStatus.PENDING
    assert not result.is_active
    assert not result.is_expired


async def test_revoked_license_is_not_active(engine, service, approved):
    await service.revoke(approved.id, ADMIN)

    result = await engine.verify(approved.id, "REG-123456")

    assert result.status is LicenseStatus.REVOKED
    assert not result.is_active


@pytest.mark.parametrize(
    "identity_id, registration_number, field",
    [
        ("", "REG-123456", "identity_id"),
        ("  ", "REG-123456", "identity_id"),
        (None, "REG-123456", "identity_id"),
        ("1", "", "registration_number"),
        ("1", None, "registration_number"),
    ],
)
async def test_missing_fields(engine, identity_id, registration_number, field):
    with pytest.raises(MissingFieldError) as exc_info:
        await engine.verify(identity_id, registration_number)
    assert exc_info.value.field == field


async def test_format_checked_before_lookup(engine, ledger):
    with pytest.raises(RegistrationFormatError):
        await engine.verify("1", "REG-12")
    assert await ledger.count() == 0


@pytest.mark.parametrize("value", ["abc", "1.5", "-2", True])
def test_identity_format(value):
    with pytest.raises(IdentityFormatError):
        parse_identity_id(value)


@pytest.mark.parametrize("value, expected", [("4", 4), (" #12 ", 12), (7, 7), (0, 0)])
def test_parse_identity(value, expected):
    assert parse_identity_id(value) == expected
