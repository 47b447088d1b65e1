"""
Domain models for business license records.

The ledger owns every license record; these models are read-only views
decoded from it for the duration of a single request.

Design Decisions:
- Frozen dataclasses: no component holds a mutable copy across calls
- Timestamps are timezone-aware datetimes, None meaning "not yet set"
  (the ledger's zero sentinel never leaves the codec)
- Status values match the ledger's status strings exactly
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class LicenseStatus(Enum):
    """Lifecycle states of a license record."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REVOKED = "Revoked"

    @property
    def is_terminal(self) -> bool:
        """Rejected and revoked records accept no further transitions."""
        return self in (LicenseStatus.REJECTED, LicenseStatus.REVOKED)


@dataclass(frozen=True)
class SubmissionFields:
    """
    Everything an applicant sends to the ledger when applying.

    The ledger assigns the id, the applicant identity and the
    timestamps itself.
    """
    business_name: str
    registration_number: str
    email: str
    premise_address: str
    audit_description: str
    business_type: str
    business_sector: str
    document_reference: str


@dataclass(frozen=True)
class LicenseRecord:
    """
    A license record as stored on the ledger.

    `id` is ledger-assigned and never reused; `applicant_identity` is
    fixed at creation.
    """
    id: int
    business_name: str
    registration_number: str
    email: str
    premise_address: str
    audit_description: str
    business_type: str
    business_sector: str
    document_reference: str
    applicant_identity: str
    status: LicenseStatus
    submitted_at: datetime | None = None
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """An unset expiry never expires."""
        return self.expires_at is not None and now > self.expires_at

    def is_active(self, now: datetime) -> bool:
        """Approved and not past its expiry."""
        return self.status is LicenseStatus.APPROVED and not self.is_expired(now)

    def submitted_on(self, now: datetime | None = None) -> datetime:
        """Submission time, falling back to `now` when the ledger left it unset."""
        if self.submitted_at is not None:
            return self.submitted_at
        return now or datetime.now(timezone.utc)

    def belongs_to(self, identity: str) -> bool:
        """Case-insensitive applicant match."""
        return self.applicant_identity.lower() == identity.strip().lower()


@dataclass(frozen=True)
class ApplicationForm:
    """
    Raw applicant input as collected by the submission form.

    Composed into SubmissionFields by domain.application.
    """
    applicant_name: str
    tax_id: str
    address: str
    city: str
    state: str
    email: str
    registration_number: str
    business_sector: str
    business_type: str
    designation: str = "Individual"
    district: str = ""
    mobile: str = ""


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of a successful two-factor lookup.

    `status` is reported alongside `is_active` so callers can tell
    "approved but expired" apart from "rejected" or "revoked".
    """
    record: LicenseRecord
    is_active: bool
    is_expired: bool
    checked_at: datetime

    @property
    def status(self) -> LicenseStatus:
        return self.record.status


@dataclass
class RegistryStats:
    """Status counts across every record on the ledger."""
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    revoked: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.approved + self.rejected + self.revoked

    def count(self, status: LicenseStatus) -> None:
        """Add one record of the given status."""
        name = status.name.lower()
        setattr(self, name, getattr(self, name) + 1)


@dataclass
class RegistryOverview:
    """
    Administrator view of the registry.

    Mutable because it is assembled incrementally while scanning.
    """
    records: list[LicenseRecord] = field(default_factory=list)
    stats: RegistryStats = field(default_factory=RegistryStats)
