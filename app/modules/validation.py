"""Named validation schemas for user-submitted data."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from app.core.validation import ValidationResult, validate_model
from app.modules.billing.schemas import PaymentProofSubmission, VerificationDecision
from app.modules.booking.schemas import (
    BookingDetails,
    BookingForm,
    CustomerDetails,
    DateRangeFilter,
)
from app.modules.catalog.schemas import BrandDefinition, ServiceDefinition

SCHEMAS: dict[str, type[BaseModel]] = {
    "customer": CustomerDetails,
    "booking": BookingDetails,
    "booking_form": BookingForm,
    "payment_proof": PaymentProofSubmission,
    "verification": VerificationDecision,
    "service": ServiceDefinition,
    "brand": BrandDefinition,
    "date_range": DateRangeFilter,
}


def validate(schema_name: str, raw: Any) -> ValidationResult[Any]:
    """Validate raw input against a named schema.

    Every failing field is reported, keyed by its dotted path.
    """
    try:
        model = SCHEMAS[schema_name]
    except KeyError:
        raise ValueError(f"Unknown validation schema: {schema_name}") from None
    return validate_model(model, raw)
