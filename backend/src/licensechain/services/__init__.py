"""
Services package - Ledger access and license orchestration.

Includes the ledger gateway, uniqueness guard, verification engine and
the license service that ties them together.
"""

from .ledger import InMemoryLedger, LedgerClient, LedgerGateway
from .licensing import LicenseService
from .uniqueness import UniquenessGuard
from .verification import VerificationEngine

__all__ = [
    "InMemoryLedger",
    "LedgerClient",
    "LedgerGateway",
    "LicenseService",
    "UniquenessGuard",
    "VerificationEngine",
]
