"""Root conftest: shared fixtures for the license registry."""

import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("ADMIN_IDENTITY", "0xAdmin000000000000000000000000000000000001")

import pytest
from httpx import ASGITransport, AsyncClient

from licensechain.config import Settings
from licensechain.domain.authorization import AuthorizationGate
from licensechain.domain.models import ApplicationForm, SubmissionFields
from licensechain.services.ledger import InMemoryLedger, LedgerClient
from licensechain.services.licensing import LicenseService
from licensechain.services.uniqueness import UniquenessGuard
from licensechain.services.verification import VerificationEngine

ADMIN = "0xAdmin000000000000000000000000000000000001"
APPLICANT = "0xApplicant0000000000000000000000000000002"
STRANGER = "0xStranger00000000000000000000000000000003"

START = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock that tests can move forward."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(clock):
    return InMemoryLedger(administrator=ADMIN, clock=clock)


@pytest.fixture
def ledger(gateway):
    return LedgerClient(gateway, timeout_seconds=1.0)


@pytest.fixture
def service(ledger):
    return LicenseService(
        ledger=ledger,
        gate=AuthorizationGate(ADMIN),
        guard=UniquenessGuard(ledger),
    )


@pytest.fixture
def engine(ledger, clock):
    return VerificationEngine(ledger, clock=clock)


def make_fields(registration_number: str = "REG-123456", **overrides) -> SubmissionFields:
    values = dict(
        business_name="Acme Bakery",
        registration_number=registration_number,
        email="owner@acme.test",
        premise_address="12 Mill Road, Pune, MH",
        audit_description="Owner: Asha Rao | PAN: ABCDE1234F | Loc: Pune, MH | Type: Bakery",
        business_type="Bakery",
        business_sector="Food",
        document_reference="",
    )
    values.update(overrides)
    return SubmissionFields(**values)


@pytest.fixture
def fields():
    return make_fields()


@pytest.fixture
def form():
    return ApplicationForm(
        applicant_name="Asha Rao",
        tax_id="abcde1234f",
        address="12 Mill Road",
        city="Pune",
        state="MH",
        email="owner@acme.test",
        registration_number="reg_123456",
        business_sector="Food",
        business_type="Bakery",
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        admin_identity=ADMIN,
        ledger_backend="memory",
        storage_path=tmp_path / "storage",
        debug=True,
    )


@pytest.fixture
async def client(settings, gateway, clock):
    """HTTP client against an app wired to the in-memory ledger."""
    from licensechain.main import create_app

    app = create_app(settings=settings, gateway=gateway, clock=clock)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
