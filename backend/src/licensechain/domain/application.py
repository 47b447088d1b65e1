"""
Composition of ledger submissions from the application form.

The ledger stores a single free-text audit description and a single
premise address; both are assembled here from the individual form fields.
"""

from .errors import MissingFieldError
from .models import ApplicationForm, SubmissionFields
from .registration import validate_registration_number


REQUIRED_FORM_FIELDS = (
    "applicant_name",
    "tax_id",
    "address",
    "city",
    "state",
    "email",
    "registration_number",
    "business_sector",
    "business_type",
)


def normalize_tax_id(value: str) -> str:
    """Tax ids (PAN) follow the same casing rule as registration numbers."""
    return value.strip().upper().replace("_", "-")


def compose_premise_address(form: ApplicationForm) -> str:
    return f"{form.address.strip()}, {form.city.strip()}, {form.state.strip()}"


def compose_audit_description(form: ApplicationForm) -> str:
    """
    Free-text audit line kept on the ledger record, e.g.
    'Owner: Asha Rao | PAN: ABCDE1234F | Loc: Pune, MH | Type: Bakery'
    """
    return (
        f"Owner: {form.applicant_name.strip()} | "
        f"PAN: {normalize_tax_id(form.tax_id)} | "
        f"Loc: {form.city.strip()}, {form.state.strip()} | "
        f"Type: {form.business_type.strip()}"
    )


def compose_submission(form: ApplicationForm, document_reference: str) -> SubmissionFields:
    """
    Validate the form and build the ledger submission.

    Raises:
        MissingFieldError: If a required form field is blank
        RegistrationFormatError: If the registration number is malformed
    """
    for name in REQUIRED_FORM_FIELDS:
        if not str(getattr(form, name) or "").strip():
            raise MissingFieldError(name)

    return SubmissionFields(
        business_name=form.applicant_name.strip(),
        registration_number=validate_registration_number(form.registration_number),
        email=form.email.strip(),
        premise_address=compose_premise_address(form),
        audit_description=compose_audit_description(form),
        business_type=form.business_type.strip(),
        business_sector=form.business_sector.strip(),
        document_reference=document_reference,
    )
