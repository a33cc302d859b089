"""Tests for rental form validation and the submission path."""

import pytest

from conftest import DIAGONAL, ISSUED_AT, TAP, draw
from contract_pdf import BRAND, SIGNATURE_PLACEHOLDER, build_contract
from rental_form import (
    FIRST_NAME_REQUIRED,
    LAST_NAME_REQUIRED,
    SIGNATURE_INCOMPLETE,
    SIGNATURE_REQUIRED,
    ValidationError,
    submit_rental,
    validate_submission,
)
from signature_pad import SignatureCapture


class GenerateSpy:
    def __init__(self):
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return build_contract(request)


class TestValidation:
    def test_valid_submission_has_no_errors(self, valid_pad):
        assert validate_submission("Anna", "Muller", valid_pad) == {}

    def test_blank_names(self, valid_pad):
        errors = validate_submission("   ", "", valid_pad)
        assert errors == {"first_name": FIRST_NAME_REQUIRED, "last_name": LAST_NAME_REQUIRED}

    def test_empty_signature(self):
        errors = validate_submission("Anna", "Muller", SignatureCapture())
        assert errors == {"signature": SIGNATURE_REQUIRED}

    def test_dot_signature(self):
        pad = SignatureCapture()
        draw(pad, TAP)
        errors = validate_submission("Anna", "Muller", pad)
        assert errors == {"signature": SIGNATURE_INCOMPLETE}

    def test_all_errors_reported_together(self):
        errors = validate_submission("", "", SignatureCapture())
        assert set(errors) == {"first_name", "last_name", "signature"}


class TestSubmit:
    def test_single_tap_blocks_generation(self, excavator):
        pad = SignatureCapture()
        draw(pad, TAP)
        spy = GenerateSpy()

        with pytest.raises(ValidationError) as excinfo:
            submit_rental(excavator, "Anna", "Muller", pad, generate=spy)

        assert "signature" in excinfo.value.errors
        assert spy.requests == []

    def test_names_trimmed_and_signature_exported(self, excavator, valid_pad):
        spy = GenerateSpy()
        submit_rental(excavator, "  Anna ", " Muller", valid_pad, generate=spy, issued_at=ISSUED_AT)

        (request,) = spy.requests
        assert request.first_name == "Anna"
        assert request.last_name == "Muller"
        assert request.signature == valid_pad.to_export().png
        assert request.issued_at == ISSUED_AT
        assert request.vehicle_id == "excavator-001"

    def test_end_to_end_contract(self, excavator):
        pad = SignatureCapture(600, 200)
        draw(pad, DIAGONAL)
        document = submit_rental(excavator, "Anna", "Muller", pad, issued_at=ISSUED_AT)

        texts = [op.text for op in document.texts()]
        assert BRAND in texts
        assert "Daily Rental Rate: $350.00" in texts
        assert "Name: Anna Muller" in texts
        assert SIGNATURE_PLACEHOLDER not in texts
        assert [op for page in document.pages for op in page.images()]


def test_validation_error_message():
    exc = ValidationError({"signature": SIGNATURE_REQUIRED})
    assert "signature: Signature is required" in str(exc)
