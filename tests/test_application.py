"""Application form -> ledger submission."""

from dataclasses import replace

import pytest

from licensechain.domain.application import (
    compose_audit_description,
    compose_premise_address,
    compose_submission,
)
from licensechain.domain.errors import MissingFieldError, RegistrationFormatError


def test_premise_address(form):
    assert compose_premise_address(form) == "12 Mill Road, Pune, MH"


def test_audit_description(form):
    assert compose_audit_description(form) == (
        "Owner: Asha Rao | PAN: ABCDE1234F | Loc: Pune, MH | Type: Bakery"
    )


def test_compose_submission(form):
    fields = compose_submission(form, "sha256:abc.pdf")

    assert fields.business_name == "Asha Rao"
    assert fields.registration_number == "REG-123456"
    assert fields.business_type == "Bakery"
    assert fields.business_sector == "Food"
    assert fields.document_reference == "sha256:abc.pdf"


@pytest.mark.parametrize("name", ["applicant_name", "tax_id", "city", "email", "business_type"])
def test_blank_required_field(form, name):
    with pytest.raises(MissingFieldError) as exc_info:
        compose_submission(replace(form, **{name: "  "}), "")
    assert exc_info.value.field == name


def test_optional_fields_may_be_blank(form):
    fields = compose_submission(replace(form, district="", mobile=""), "")
    assert fields.registration_number == "REG-123456"


def test_bad_registration_number(form):
    with pytest.raises(RegistrationFormatError):
        compose_submission(replace(form, registration_number="REG-1"), "")
