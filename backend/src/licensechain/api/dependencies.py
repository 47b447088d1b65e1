"""
Service wiring and request dependencies.

Services are built once per application from settings and kept on
`app.state`; route handlers receive them through FastAPI dependencies.
The caller's account identity arrives in the X-Account-Identity header,
set by the wallet-connected frontend.
"""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request

from licensechain.config import Settings
from licensechain.domain.authorization import AuthorizationGate
from licensechain.domain.errors import MissingFieldError
from licensechain.infrastructure.database import create_session_factory, get_engine
from licensechain.infrastructure.sql_ledger import SqlLedgerGateway
from licensechain.infrastructure.storage import DocumentStore, LocalStorageBackend
from licensechain.services.ledger import Clock, InMemoryLedger, LedgerClient, LedgerGateway, utc_now
from licensechain.services.licensing import LicenseService
from licensechain.services.uniqueness import UniquenessGuard
from licensechain.services.verification import VerificationEngine

logger = logging.getLogger(__name__)

IDENTITY_HEADER = "X-Account-Identity"


@dataclass
class ServiceContainer:
    """Everything a request handler may need."""
    settings: Settings
    gateway: LedgerGateway
    ledger: LedgerClient
    licenses: LicenseService
    verification: VerificationEngine
    documents: DocumentStore


def build_gateway(settings: Settings, clock: Clock = utc_now) -> LedgerGateway:
    """Select the ledger implementation named in settings."""
    options = dict(
        clock=clock,
        administrator=settings.admin_identity,
        enforce_uniqueness=settings.ledger_enforces_uniqueness,
        reuse_revoked_numbers=settings.reuse_revoked_numbers,
        validity_days=settings.license_validity_days,
    )
    if settings.ledger_backend == "sql":
        return SqlLedgerGateway(create_session_factory(get_engine(settings)), **options)
    return InMemoryLedger(**options)


def build_container(
    settings: Settings,
    gateway: LedgerGateway | None = None,
    clock: Clock = utc_now,
) -> ServiceContainer:
    """
    Wire every service from settings.

    `clock` is shared by a self-hosted ledger, which stamps issue and expiry
    dates with it, and the verification engine, which compares against them.
    """
    gateway = gateway or build_gateway(settings, clock)
    ledger = LedgerClient(gateway, timeout_seconds=settings.ledger_timeout_seconds)
    gate = AuthorizationGate(settings.admin_identity)
    guard = UniquenessGuard(ledger, reuse_revoked_numbers=settings.reuse_revoked_numbers)

    logger.info(
        f"Ledger backend: {settings.ledger_backend} "
        f"(uniqueness enforced by ledger: {gateway.enforces_uniqueness}, "
        f"revoked numbers: {settings.revoked_registration_policy})"
    )
    return ServiceContainer(
        settings=settings,
        gateway=gateway,
        ledger=ledger,
        licenses=LicenseService(ledger=ledger, gate=gate, guard=guard),
        verification=VerificationEngine(ledger, clock=clock),
        documents=DocumentStore(LocalStorageBackend(settings.storage_path)),
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_license_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> LicenseService:
    return container.licenses


def get_verification_engine(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> VerificationEngine:
    return container.verification


def get_document_store(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> DocumentStore:
    return container.documents


def get_caller_identity(
    x_account_identity: Annotated[str | None, Header(alias=IDENTITY_HEADER)] = None,
) -> str:
    """
    Identity of the connected account.

    Raises:
        MissingFieldError: If no account is connected
    """
    if not x_account_identity or not x_account_identity.strip():
        raise MissingFieldError("caller_identity")
    return x_account_identity.strip()


CallerIdentity = Annotated[str, Depends(get_caller_identity)]
