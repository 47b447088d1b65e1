"""
Exception handlers mapping license errors onto HTTP responses.

Every failure, including malformed requests rejected by FastAPI before a
handler runs, is rendered as {"error": {"code", "message", ...}}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from licensechain.domain.errors import (
    LicenseChainError,
    LicenseValidationError,
    MissingFieldError,
    SchemaMismatchError,
)

logger = logging.getLogger(__name__)


def request_validation_payload(exc: RequestValidationError) -> dict:
    """
    Shape FastAPI's validation errors like LicenseValidationError.

    A request missing any field reports the first one as `missing_field`;
    anything else is a generic `validation_error`.
    """
    problems = [
        {
            "field": ".".join(str(loc) for loc in e["loc"] if loc not in ("body", "query", "header")),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    missing = [p for p in problems if p["type"] == "missing"]
    if missing:
        error = MissingFieldError(missing[0]["field"])
    else:
        error = LicenseValidationError("Invalid request data")
    return {**error.to_dict(), "details": problems}


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Install handlers for typed license errors, request validation and a catch-all."""

    @app.exception_handler(LicenseChainError)
    async def license_error_handler(request: Request, exc: LicenseChainError):
        if isinstance(exc, SchemaMismatchError):
            logger.error(f"Ledger schema drift on {request.url.path}: {exc}")
        elif exc.http_status >= 500:
            logger.warning(f"{exc.code} on {request.url.path}: {exc}")

        return JSONResponse(
            status_code=exc.http_status,
            content={"error": exc.to_dict()},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=LicenseValidationError.http_status,
            content={"error": request_validation_payload(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        detail = str(exc) if debug else "An internal error occurred"
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "internal_error", "message": detail}},
        )
