"""
Error taxonomy for license lifecycle and verification.

Every failure carries a stable code, the HTTP status a presentation
layer should map it to, and the identifiers needed to render a precise
message without re-deriving them.
"""

from typing import Any


class LicenseChainError(Exception):
    """Base class for all license lifecycle and verification errors."""

    code = "error"
    http_status = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Structured form: code, message and identifiers."""
        return {"code": self.code, "message": self.message, **self.details}


class LicenseValidationError(LicenseChainError):
    """Malformed or missing input, raised before any side effect."""
    code = "validation_error"
    http_status = 422


class MissingFieldError(LicenseValidationError):
    code = "missing_field"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} is required", field=field)


class RegistrationFormatError(LicenseValidationError):
    code = "format_error"

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            "Invalid registration number format, expected REG- followed by 6 digits",
            field="registration_number",
            value=value,
        )


class IdentityFormatError(LicenseValidationError):
    code = "format_error"

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            "License identity number must be a positive integer",
            field="identity_id",
            value=value,
        )


class RegistrationConflictError(LicenseChainError):
    """Registration number already held by a live record."""
    code = "conflict"
    http_status = 409

    def __init__(self, registration_number: str, existing_id: int | None = None) -> None:
        self.registration_number = registration_number
        self.existing_id = existing_id
        super().__init__(
            f"Registration number {registration_number} is already taken",
            registration_number=registration_number,
            existing_id=existing_id,
        )


class LicenseNotFoundError(LicenseChainError):
    code = "not_found"
    http_status = 404

    def __init__(self, license_id: int | str) -> None:
        self.license_id = license_id
        super().__init__(
            f"License #{license_id} not found on the ledger",
            license_id=license_id,
        )


class SecurityMismatchError(LicenseChainError):
    """
    The registration number does not belong to the queried record.

    Only raised once the record is known to exist.
    """
    code = "security_mismatch"
    http_status = 403

    def __init__(self, license_id: int) -> None:
        self.license_id = license_id
        super().__init__(
            f"The provided registration number does not match license #{license_id}",
            license_id=license_id,
        )


class UnauthorizedError(LicenseChainError):
    code = "unauthorized"
    http_status = 403

    def __init__(self, caller: str, message: str = "Caller is not the registry administrator") -> None:
        self.caller = caller
        super().__init__(
            message,
            caller=caller,
        )


class InvalidTransitionError(LicenseChainError):
    code = "invalid_transition"
    http_status = 409

    def __init__(self, license_id: int, current_status: str, action: str) -> None:
        self.license_id = license_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} license #{license_id} in state {current_status}",
            license_id=license_id,
            current_status=current_status,
            action=action,
        )


class LedgerUnavailableError(LicenseChainError):
    """
    The ledger did not answer in time or the transport failed.

    `outcome_unknown` is set for writes that may have been accepted;
    such writes must not be retried blindly.
    """
    code = "ledger_unavailable"
    http_status = 503

    def __init__(self, operation: str, reason: str, outcome_unknown: bool = False) -> None:
        self.operation = operation
        self.reason = reason
        self.outcome_unknown = outcome_unknown
        super().__init__(
            f"Ledger unavailable during {operation}: {reason}",
            operation=operation,
            outcome_unknown=outcome_unknown,
        )


class LedgerRejectedError(LicenseChainError):
    """The ledger executed and reverted a write."""
    code = "ledger_rejected"
    http_status = 502

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Ledger rejected {operation}: {reason}",
            operation=operation,
            reason=reason,
        )


class DuplicateRegistrationRejected(LedgerRejectedError):
    """Ledger-side uniqueness enforcement reverted a submission."""

    def __init__(self, registration_number: str, existing_id: int | None = None) -> None:
        self.registration_number = registration_number
        self.existing_id = existing_id
        super().__init__("submit", f"duplicate registration number {registration_number}")


class SchemaMismatchError(LicenseChainError):
    """
    Ledger gateway and record codec have drifted apart.

    Fatal: not retryable.
    """
    code = "schema_mismatch"
    http_status = 500

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Ledger record schema mismatch: expected {expected}, got {actual}",
            expected=expected,
            actual=actual,
        )


class InvalidDocumentError(LicenseChainError):
    """Supporting document is empty or of an unsupported type."""
    code = "invalid_document"
    http_status = 400

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(
            f"Invalid supporting document {filename}: {reason}",
            field="document",
            filename=filename,
        )
