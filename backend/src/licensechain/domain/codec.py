"""
Record codec between the ledger's positional records and LicenseRecord.

The ledger returns records as fixed-order tuples (its ABI). Each known
layout is described by a versioned RecordSchema and selected by arity;
anything else means the gateway and the codec have drifted and is fatal.

Design Decisions:
- Zero-valued timestamps become None here and nowhere else
- A raw record whose id is 0 is the ledger's "no such record" answer and
  decodes to None rather than a LicenseRecord
- Submission encoding follows the ledger's argument order, where the
  `subType` slot carries our business_type and the `businessType` slot
  carries our business_sector
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence

from .errors import SchemaMismatchError
from .models import LicenseRecord, LicenseStatus, SubmissionFields


RawRecord = Sequence[Any]
RawSubmission = tuple[str, str, str, str, str, str, str, str]

NOT_FOUND_ID = 0


@dataclass(frozen=True)
class RecordSchema:
    """A versioned positional layout of a ledger record."""
    version: str
    fields: tuple[str, ...]

    @property
    def arity(self) -> int:
        return len(self.fields)

    def index(self, name: str) -> int:
        return self.fields.index(name)


# Layout returned by the first registry contract.
SCHEMA_V1 = RecordSchema(
    version="v1",
    fields=(
        "id",
        "business_name",
        "registration_number",
        "email",
        "premise_address",
        "audit_description",
        "business_type",
        "business_sector",
        "document_reference",
        "applicant_identity",
        "issued_at",
        "expires_at",
        "status",
    ),
)

# Adds an explicit submission timestamp ahead of the issue date.
SCHEMA_V2 = RecordSchema(
    version="v2",
    fields=SCHEMA_V1.fields[:10] + ("submitted_at",) + SCHEMA_V1.fields[10:],
)

SCHEMAS: dict[int, RecordSchema] = {
    SCHEMA_V1.arity: SCHEMA_V1,
    SCHEMA_V2.arity: SCHEMA_V2,
}

TIMESTAMP_FIELDS = ("submitted_at", "issued_at", "expires_at")


def schema_for(raw: RawRecord) -> RecordSchema:
    """
    Select the schema matching a raw record's arity.

    Raises:
        SchemaMismatchError: If no known schema has that arity
    """
    try:
        arity = len(raw)
    except TypeError:
        raise SchemaMismatchError(_expected_arities(), type(raw).__name__) from None

    schema = SCHEMAS.get(arity)
    if schema is None:
        raise SchemaMismatchError(_expected_arities(), f"{arity} fields")
    return schema


def _expected_arities() -> str:
    arities = " or ".join(str(arity) for arity in sorted(SCHEMAS))
    return f"{arities} fields"


def timestamp_from_ledger(value: Any) -> datetime | None:
    """Convert a ledger epoch-seconds value; 0 means unset."""
    seconds = int(value or 0)
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def timestamp_to_ledger(value: datetime | None) -> int:
    """Convert back to epoch seconds; None becomes the 0 sentinel."""
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def decode_status(value: Any) -> LicenseStatus:
    """
    Map a ledger status string to LicenseStatus.

    Raises:
        SchemaMismatchError: For a value the ledger should never emit
    """
    try:
        return LicenseStatus(str(value))
    except ValueError:
        expected = ", ".join(status.value for status in LicenseStatus)
        raise SchemaMismatchError(f"status in ({expected})", repr(value)) from None


def decode_record(raw: RawRecord) -> LicenseRecord | None:
    """
    Decode a positional ledger record.

    Returns:
        The typed record, or None for the not-found sentinel (id 0)

    Raises:
        SchemaMismatchError: On unknown arity or an impossible status
    """
    schema = schema_for(raw)
    values = dict(zip(schema.fields, raw))

    record_id = int(values["id"] or 0)
    if record_id == NOT_FOUND_ID:
        return None

    timestamps = {
        name: timestamp_from_ledger(values.get(name, 0))
        for name in TIMESTAMP_FIELDS
    }

    return LicenseRecord(
        id=record_id,
        business_name=str(values["business_name"]),
        registration_number=str(values["registration_number"]),
        email=str(values["email"]),
        premise_address=str(values["premise_address"]),
        audit_description=str(values["audit_description"]),
        business_type=str(values["business_type"]),
        business_sector=str(values["business_sector"]),
        document_reference=str(values["document_reference"]),
        applicant_identity=str(values["applicant_identity"]),
        status=decode_status(values["status"]),
        **timestamps,
    )


def encode_record(record: LicenseRecord, schema: RecordSchema = SCHEMA_V2) -> tuple[Any, ...]:
    """Encode a record into the positional layout of `schema`."""
    values: dict[str, Any] = {
        "id": record.id,
        "business_name": record.business_name,
        "registration_number": record.registration_number,
        "email": record.email,
        "premise_address": record.premise_address,
        "audit_description": record.audit_description,
        "business_type": record.business_type,
        "business_sector": record.business_sector,
        "document_reference": record.document_reference,
        "applicant_identity": record.applicant_identity,
        "submitted_at": timestamp_to_ledger(record.submitted_at),
        "issued_at": timestamp_to_ledger(record.issued_at),
        "expires_at": timestamp_to_ledger(record.expires_at),
        "status": record.status.value,
    }
    return tuple(values[name] for name in schema.fields)


def empty_record(schema: RecordSchema = SCHEMA_V2) -> tuple[Any, ...]:
    """The all-zero record a ledger returns for an unknown id."""
    defaults = {"id": 0, "submitted_at": 0, "issued_at": 0, "expires_at": 0}
    return tuple(defaults.get(name, "") for name in schema.fields)


def encode_submission(fields: SubmissionFields) -> RawSubmission:
    """
    Order submission fields as the ledger's submit call expects them.

    (businessName, registrationNumber, email, address, auditDescription,
    subType, businessType, documentReference)
    """
    return (
        fields.business_name,
        fields.registration_number,
        fields.email,
        fields.premise_address,
        fields.audit_description,
        fields.business_type,
        fields.business_sector,
        fields.document_reference,
    )


def decode_submission(raw: Sequence[Any]) -> SubmissionFields:
    """Inverse of encode_submission, used by self-hosted ledgers."""
    if len(raw) != 8:
        raise SchemaMismatchError("8 submission arguments", f"{len(raw)} arguments")
    (
        business_name,
        registration_number,
        email,
        premise_address,
        audit_description,
        business_type,
        business_sector,
        document_reference,
    ) = (str(value) for value in raw)
    return SubmissionFields(
        business_name=business_name,
        registration_number=registration_number,
        email=email,
        premise_address=premise_address,
        audit_description=audit_description,
        business_type=business_type,
        business_sector=business_sector,
        document_reference=document_reference,
    )
