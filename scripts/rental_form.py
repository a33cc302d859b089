"""Rental form submission: validate renter fields and signature, then generate.

A submission is blocked (ValidationError) unless both name fields are
non-empty after trimming and the signature pad holds a valid signature.
Only then is the contract generator called.
"""

import logging
from dataclasses import dataclass

from contract_pdf import ContractRequest, build_contract, issue_timestamp

LOGGER = logging.getLogger(__name__)

FIRST_NAME_REQUIRED = "First name is required"
LAST_NAME_REQUIRED = "Last name is required"
SIGNATURE_REQUIRED = "Signature is required"
SIGNATURE_INCOMPLETE = "Please draw a complete signature (not just a dot)"


class ValidationError(ValueError):
    """Field-level validation failure. `errors` maps field name -> message."""

    def __init__(self, errors: dict):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


@dataclass(frozen=True)
class RenterInfo:
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


def validate_submission(first_name, last_name, pad) -> dict:
    """Return field -> message for every problem; empty dict means OK."""
    errors = {}
    if not (first_name or "").strip():
        errors["first_name"] = FIRST_NAME_REQUIRED
    if not (last_name or "").strip():
        errors["last_name"] = LAST_NAME_REQUIRED
    if pad is None or pad.is_empty():
        errors["signature"] = SIGNATURE_REQUIRED
    elif not pad.is_valid():
        errors["signature"] = SIGNATURE_INCOMPLETE
    return errors


def submit_rental(vehicle, first_name, last_name, pad, generate=build_contract, issued_at=None):
    """Validate the form and build the contract document.

    Raises ValidationError without calling `generate` when any field fails.
    """
    errors = validate_submission(first_name, last_name, pad)
    if errors:
        LOGGER.info("Rental submission for %s blocked: %s", vehicle.id, sorted(errors))
        raise ValidationError(errors)

    renter = RenterInfo(first_name.strip(), last_name.strip())
    request = ContractRequest.from_vehicle(
        vehicle,
        renter.first_name,
        renter.last_name,
        pad.to_export().png,
        issued_at=issued_at or issue_timestamp(),
    )
    return generate(request)
