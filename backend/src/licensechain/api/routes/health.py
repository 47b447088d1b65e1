"""
Health check endpoint.

Provides system health status for monitoring and load balancers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from licensechain import __version__
from licensechain.api.dependencies import ServiceContainer, get_container
from licensechain.api.schemas import HealthResponse
from licensechain.domain.errors import LedgerUnavailableError

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> HealthResponse:
    """
    Check system health.
    
    Reports degraded instead of failing when the ledger does not answer.
    """
    try:
        records = await container.ledger.count()
    except LedgerUnavailableError:
        return HealthResponse(
            status="degraded",
            version=__version__,
            ledger_backend=container.settings.ledger_backend,
        )
    
    return HealthResponse(
        status="healthy",
        version=__version__,
        ledger_backend=container.settings.ledger_backend,
        ledger_records=records,
    )
