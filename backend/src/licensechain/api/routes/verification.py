"""
License verification endpoint.

Public: anyone holding both the identity number and the registration
number can confirm a license. No caller identity is required.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from licensechain.api.dependencies import get_verification_engine
from licensechain.api.schemas import ErrorResponse, VerificationResponse, VerifyLicenseRequest
from licensechain.services.verification import VerificationEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["verification"])


@router.post(
    "",
    response_model=VerificationResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Registration number does not match"},
        404: {"model": ErrorResponse, "description": "License identity number not found"},
        422: {"model": ErrorResponse, "description": "Missing field or invalid format"},
        503: {"model": ErrorResponse, "description": "Ledger unavailable"},
    },
)
async def verify_license(
    request: VerifyLicenseRequest,
    engine: Annotated[VerificationEngine, Depends(get_verification_engine)],
) -> VerificationResponse:
    """
    Verify a license with its identity number and registration number.
    
    **Process:**
    1. Validate both fields and the REG-XXXXXX format
    2. Fetch the record by identity number
    3. Compare normalized registration numbers
    4. Evaluate expiry and active status
    """
    result = await engine.verify(request.identity_id, request.registration_number)
    logger.info(
        f"Verified license #{result.record.id}: status={result.status.value} "
        f"active={result.is_active}"
    )
    return VerificationResponse.from_result(result)
