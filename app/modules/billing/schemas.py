"""Billing schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from app.core.enums import (
    InvoiceStatusEnum,
    PaymentMethodEnum,
    PaymentStatusEnum,
    VerificationDecisionEnum,
    VerificationStatusEnum,
)


class PaymentProofSubmission(BaseModel):
    """Transfer details sent with a proof-of-payment upload."""

    model_config = ConfigDict(str_strip_whitespace=True)

    error_messages: ClassVar[dict[str, str]] = {
        "reference_number.string_too_short": "Reference number is required",
        "reference_number.missing": "Reference number is required",
        "bank_account.string_too_short": "Bank account is required",
        "bank_account.missing": "Bank account is required",
        "amount.greater_than": "Amount must be positive",
        "amount.missing": "Amount must be positive",
        "amount.decimal_parsing": "Amount must be positive",
    }

    reference_number: str = Field(min_length=1, max_length=100)
    bank_account: str = Field(min_length=1, max_length=100)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)


class VerificationDecision(BaseModel):
    """Administrator decision on a payment under review."""

    error_messages: ClassVar[dict[str, str]] = {
        "status.enum": "Status must be approved or rejected",
        "status.missing": "Status must be approved or rejected",
    }

    status: VerificationDecisionEnum
    rejection_reason: str | None = Field(default=None, max_length=500, validate_default=True)

    @field_validator("rejection_reason")
    @classmethod
    def require_reason_on_reject(cls, value: str | None, info: ValidationInfo) -> str | None:
        value = (value or "").strip() or None
        if info.data.get("status") == VerificationDecisionEnum.REJECTED and value is None:
            raise ValueError("Rejection reason is required when rejecting a payment")
        return value


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    invoice_number: str
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: InvoiceStatusEnum
    due_date: datetime
    paid_at: datetime | None


class PaymentRead(BaseModel):
    """Payment response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    invoice_id: UUID
    amount: Decimal
    method: PaymentMethodEnum
    status: PaymentStatusEnum
    reference_number: str | None
    bank_account: str | None
    declared_amount: Decimal | None
    proof_url: str | None
    submitted_at: datetime | None
    verification_status: VerificationStatusEnum | None
    verified_by: str | None
    verified_at: datetime | None
    rejection_reason: str | None
    created_at: datetime
    updated_at: datetime


class ProofSubmissionRead(BaseModel):
    """Response after a proof of payment was accepted for review."""

    booking_number: str
    payment_status: PaymentStatusEnum
    verification_status: VerificationStatusEnum
    proof_url: str
