"""
Pydantic schemas for API request/response validation.

These schemas define the contract between frontend and backend.
Timestamps are ISO datetimes; unset ledger timestamps are null.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from licensechain.domain.models import (
    LicenseRecord,
    LicenseStatus,
    RegistryOverview,
    VerificationResult,
)


class LicenseStatusEnum(str, Enum):
    """License status for API responses."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REVOKED = "Revoked"

    def to_domain(self) -> LicenseStatus:
        return LicenseStatus(self.value)


# =============================================================================
# Request Schemas
# =============================================================================

class VerifyLicenseRequest(BaseModel):
    """Two-factor verification request."""
    identity_id: int | str = Field(
        default="",
        description="License identity number, as a number or a string such as '4' or '#4'",
    )
    registration_number: str = Field(
        default="",
        description="Registration number, REG- followed by 6 digits",
    )


# =============================================================================
# Response Schemas
# =============================================================================

class LicenseResponse(BaseModel):
    """A license record as stored on the ledger."""
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
    status: LicenseStatusEnum
    submitted_at: datetime
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_record(cls, record: LicenseRecord) -> "LicenseResponse":
        return cls(
            id=record.id,
            business_name=record.business_name,
            registration_number=record.registration_number,
            email=record.email,
            premise_address=record.premise_address,
            audit_description=record.audit_description,
            business_type=record.business_type,
            business_sector=record.business_sector,
            document_reference=record.document_reference,
            applicant_identity=record.applicant_identity,
            status=LicenseStatusEnum(record.status.value),
            submitted_at=record.submitted_on(),
            issued_at=record.issued_at,
            expires_at=record.expires_at,
        )


class LicenseListResponse(BaseModel):
    """Records belonging to the caller, newest first."""
    applicant_identity: str
    licenses: list[LicenseResponse]


class RegistryStatsResponse(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    revoked: int = 0
    total: int = 0


class RegistryOverviewResponse(BaseModel):
    """Administrator registry view."""
    licenses: list[LicenseResponse]
    stats: RegistryStatsResponse

    @classmethod
    def from_overview(cls, overview: RegistryOverview) -> "RegistryOverviewResponse":
        stats = overview.stats
        return cls(
            licenses=[LicenseResponse.from_record(r) for r in overview.records],
            stats=RegistryStatsResponse(
                pending=stats.pending,
                approved=stats.approved,
                rejected=stats.rejected,
                revoked=stats.revoked,
                total=stats.total,
            ),
        )


class VerificationResponse(BaseModel):
    """
    Verified public license details.

    Every record field except the applicant's account identity, which is
    only shown to the applicant and the administrator.

    `status` is reported alongside `is_active` so an approved but expired
    license can be told apart from a rejected or revoked one.
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
    status: LicenseStatusEnum
    is_active: bool
    is_expired: bool
    submitted_at: datetime
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    checked_at: datetime

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerificationResponse":
        record = result.record
        return cls(
            id=record.id,
            business_name=record.business_name,
            registration_number=record.registration_number,
            email=record.email,
            premise_address=record.premise_address,
            audit_description=record.audit_description,
            business_type=record.business_type,
            business_sector=record.business_sector,
            document_reference=record.document_reference,
            status=LicenseStatusEnum(record.status.value),
            is_active=result.is_active,
            is_expired=result.is_expired,
            submitted_at=record.submitted_on(result.checked_at),
            issued_at=record.issued_at,
            expires_at=record.expires_at,
            checked_at=result.checked_at,
        )


class AdminSessionResponse(BaseModel):
    """Whether the caller holds the administrator identity."""
    identity: str
    is_administrator: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    ledger_backend: str
    ledger_records: int | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: dict[str, Any]
