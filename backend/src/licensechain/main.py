"""
FastAPI application entry point.

This is the main application that ties together all components:
- API routes for license submission, administration and verification
- Ledger gateway selection and SQL ledger lifecycle
- CORS configuration for frontend access
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from licensechain import __version__
from licensechain.api.dependencies import ServiceContainer, build_container
from licensechain.api.errors import register_exception_handlers
from licensechain.api.routes import admin, health, licenses, verification
from licensechain.config import Settings, get_settings
from licensechain.infrastructure.database import close_db, init_db
from licensechain.services.ledger import Clock, LedgerGateway, utc_now

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Create SQL ledger tables when that backend is selected
    - Ensure the document storage directory exists
    - Release the ledger gateway and database connections on shutdown
    """
    services: ServiceContainer = app.state.services
    settings = services.settings

    logger.info(f"Starting LicenseChain v{__version__}")
    logger.info(f"Ledger backend: {settings.ledger_backend}")
    logger.info(f"Debug mode: {settings.debug}")

    if settings.ledger_backend == "sql":
        await init_db()
        logger.info("SQL ledger initialized")

    settings.storage_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Storage path: {settings.storage_path}")

    yield  # Application runs here

    logger.info("Shutting down LicenseChain")
    await services.gateway.close()
    await close_db()


def create_app(
    settings: Settings | None = None,
    gateway: LedgerGateway | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; loaded from the environment if omitted
        gateway: Ledger gateway to use instead of the configured backend
        clock: Time source shared by the ledger and the verification engine

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="LicenseChain API",
        description=(
            "Business license registry.\n\n"
            "Applicants submit license applications to a ledger, the registry "
            "administrator approves, rejects or revokes them, and anyone holding "
            "a license identity number and registration number can verify it."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.services = build_container(settings, gateway, clock)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else ["https://licensechain.io"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, debug=settings.debug)

    # Register routers
    app.include_router(health.router)
    app.include_router(licenses.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")
    app.include_router(verification.router, prefix="/api/v1")

    return app


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "licensechain.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
