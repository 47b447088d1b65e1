"""
Registry administration endpoints.

Every route here is gated on the administrator identity by the license
service itself; the router only translates requests.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from licensechain.api.dependencies import CallerIdentity, get_license_service
from licensechain.api.schemas import (
    AdminSessionResponse,
    ErrorResponse,
    LicenseResponse,
    LicenseStatusEnum,
    RegistryOverviewResponse,
)
from licensechain.services.licensing import LicenseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

TRANSITION_RESPONSES = {
    403: {"model": ErrorResponse, "description": "Caller is not the administrator"},
    404: {"model": ErrorResponse, "description": "License not found"},
    409: {"model": ErrorResponse, "description": "Action not allowed in current state"},
    503: {"model": ErrorResponse, "description": "Ledger unavailable"},
}


@router.get("/session", response_model=AdminSessionResponse)
async def admin_session(
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
) -> AdminSessionResponse:
    """Tell the frontend whether to unlock the registry dashboard."""
    return AdminSessionResponse(
        identity=caller,
        is_administrator=service.is_administrator(caller),
    )


@router.get(
    "/licenses",
    response_model=RegistryOverviewResponse,
    responses={403: {"model": ErrorResponse, "description": "Caller is not the administrator"}},
)
async def registry_overview(
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
    status: Annotated[LicenseStatusEnum | None, Query(description="Only list this status")] = None,
    q: Annotated[str | None, Query(description="Search business name or registration number")] = None,
    include_revoked: Annotated[bool, Query()] = False,
) -> RegistryOverviewResponse:
    """
    List registry records newest first with per-status counts.

    Revoked records are hidden unless `include_revoked` is set or the
    status filter asks for them.
    """
    overview = await service.registry_overview(
        caller,
        status=status.to_domain() if status else None,
        query=q,
        include_revoked=include_revoked,
    )
    return RegistryOverviewResponse.from_overview(overview)


@router.post("/licenses/{license_id}/approve", response_model=LicenseResponse, responses=TRANSITION_RESPONSES)
async def approve_license(
    license_id: int,
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
) -> LicenseResponse:
    """Approve a pending license; the ledger stamps issue and expiry dates."""
    record = await service.approve(license_id, caller)
    return LicenseResponse.from_record(record)


@router.post("/licenses/{license_id}/reject", response_model=LicenseResponse, responses=TRANSITION_RESPONSES)
async def reject_license(
    license_id: int,
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
) -> LicenseResponse:
    record = await service.reject(license_id, caller)
    return LicenseResponse.from_record(record)


@router.post("/licenses/{license_id}/revoke", response_model=LicenseResponse, responses=TRANSITION_RESPONSES)
async def revoke_license(
    license_id: int,
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
) -> LicenseResponse:
    """Revoke an approved license."""
    record = await service.revoke(license_id, caller)
    return LicenseResponse.from_record(record)
