"""Core enums used across modules."""

from enum import StrEnum


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatusEnum(StrEnum):
    """Bank-transfer payment status."""

    PENDING = "pending"
    AWAITING_REVIEW = "awaiting_review"
    VERIFIED = "verified"
    REJECTED = "rejected"
    REFUNDED = "refunded"


class VerificationStatusEnum(StrEnum):
    """Outcome of the administrator's review of a payment proof."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REQUIRES_REVIEW = "requires_review"


class VerificationDecisionEnum(StrEnum):
    """Decisions an administrator may submit for a payment proof."""

    APPROVED = "approved"
    REJECTED = "rejected"


class InvoiceStatusEnum(StrEnum):
    """Invoice settlement status."""

    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"
    VOID = "void"


class PaymentMethodEnum(StrEnum):
    """Supported payment methods."""

    BANK_TRANSFER = "bank_transfer"
