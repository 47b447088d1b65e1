"""
Applicant endpoints: submit an application and list one's own licenses.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from licensechain.api.dependencies import (
    CallerIdentity,
    get_document_store,
    get_license_service,
)
from licensechain.api.schemas import ErrorResponse, LicenseListResponse, LicenseResponse
from licensechain.domain.errors import InvalidDocumentError, UnauthorizedError
from licensechain.domain.models import ApplicationForm
from licensechain.infrastructure.storage import ALLOWED_CONTENT_TYPES, DocumentStore
from licensechain.services.licensing import LicenseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/licenses", tags=["licenses"])


@router.post(
    "",
    response_model=LicenseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid supporting document"},
        409: {"model": ErrorResponse, "description": "Registration number already taken"},
        422: {"model": ErrorResponse, "description": "Missing field or invalid format"},
        503: {"model": ErrorResponse, "description": "Ledger unavailable"},
    },
)
async def submit_application(
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
    documents: Annotated[DocumentStore, Depends(get_document_store)],
    applicant_name: Annotated[str, Form(description="Name of applicant or company")],
    tax_id: Annotated[str, Form(description="Business PAN / tax id")],
    address: Annotated[str, Form(description="Premise street address")],
    city: Annotated[str, Form()],
    state: Annotated[str, Form()],
    email: Annotated[str, Form()],
    registration_number: Annotated[str, Form(description="REG- followed by 6 digits")],
    business_sector: Annotated[str, Form()],
    business_type: Annotated[str, Form(description="Business sub-type")],
    designation: Annotated[str, Form()] = "Individual",
    district: Annotated[str, Form()] = "",
    mobile: Annotated[str, Form()] = "",
    document: Annotated[UploadFile | None, File(description="Registration proof (PDF/image)")] = None,
) -> LicenseResponse:
    """
    Submit a license application.

    The supporting document is stored first and only its reference goes
    to the ledger. The new record starts out Pending and is owned by the
    calling account.
    """
    form = ApplicationForm(
        applicant_name=applicant_name,
        tax_id=tax_id,
        address=address,
        city=city,
        state=state,
        email=email,
        registration_number=registration_number,
        business_sector=business_sector,
        business_type=business_type,
        designation=designation,
        district=district,
        mobile=mobile,
    )

    document_reference = ""
    if document is not None and document.filename:
        content_type = document.content_type or "application/octet-stream"
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidDocumentError(
                document.filename,
                f"type {content_type} not allowed, expected PDF, PNG or JPG",
            )
        content = await document.read()
        try:
            document_reference = await documents.put(content, document.filename, content_type)
        except ValueError as e:
            raise InvalidDocumentError(document.filename, str(e)) from e

    record = await service.submit_application(form, caller, document_reference)
    return LicenseResponse.from_record(record)


@router.get("/mine", response_model=LicenseListResponse)
async def list_my_licenses(
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
) -> LicenseListResponse:
    """Every license submitted by the calling account, newest first."""
    records = await service.list_for_applicant(caller)
    return LicenseListResponse(
        applicant_identity=caller,
        licenses=[LicenseResponse.from_record(r) for r in records],
    )


@router.get(
    "/{license_id}",
    response_model=LicenseResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Caller is neither the applicant nor the administrator"},
        404: {"model": ErrorResponse, "description": "License not found"},
    },
)
async def get_license(
    license_id: int,
    caller: CallerIdentity,
    service: Annotated[LicenseService, Depends(get_license_service)],
) -> LicenseResponse:
    """
    Full record for its applicant or the administrator.

    Anyone else must go through two-factor verification.
    """
    record = await service.get(license_id)
    if not record.belongs_to(caller) and not service.is_administrator(caller):
        raise UnauthorizedError(caller, f"Caller may not read license #{license_id}")
    return LicenseResponse.from_record(record)
