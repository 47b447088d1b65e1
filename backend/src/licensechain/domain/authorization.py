"""
Authorization gate for administrative transitions.

A single configured administrator identity is the only trust root.
Identities are opaque address-like strings compared case-insensitively.
"""

from .errors import MissingFieldError, UnauthorizedError


def normalize_identity(identity: str) -> str:
    return identity.strip().lower()


class AuthorizationGate:
    """
    Decides whether a caller may approve, reject or revoke licenses.

    Takes an iterable of identities so the trust root can grow into a set
    without changing `is_administrator`'s contract; today configuration
    supplies exactly one.
    """

    def __init__(self, administrator: str, *additional: str) -> None:
        identities = {normalize_identity(administrator)}
        identities.update(normalize_identity(extra) for extra in additional)
        identities.discard("")
        if not identities:
            raise ValueError("An administrator identity is required")
        self._administrators = frozenset(identities)

    def is_administrator(self, caller: str | None) -> bool:
        if not caller:
            return False
        return normalize_identity(caller) in self._administrators

    def require_administrator(self, caller: str | None) -> str:
        """
        Raise unless `caller` is the administrator.

        Raises:
            MissingFieldError: If no caller identity was supplied
            UnauthorizedError: If the caller is someone else
        """
        if not caller or not caller.strip():
            raise MissingFieldError("caller_identity")
        if not self.is_administrator(caller):
            raise UnauthorizedError(caller)
        return caller
