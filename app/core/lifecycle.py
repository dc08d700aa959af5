"""Booking, payment and verification state machines.

Pure decision logic: functions take current statuses and return the next
ones, or raise ``IllegalTransitionException``. Persisting the outcome is
the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.enums import (
    BookingStatusEnum,
    InvoiceStatusEnum,
    PaymentStatusEnum,
    VerificationDecisionEnum,
    VerificationStatusEnum,
)
from app.core.metrics import LIFECYCLE_TRANSITIONS_TOTAL
from app.shared.exceptions import IllegalTransitionException, ValidationFailedException

logger = logging.getLogger(__name__)

BOOKING_TRANSITIONS: dict[BookingStatusEnum, frozenset[BookingStatusEnum]] = {
    BookingStatusEnum.PENDING: frozenset(
        {BookingStatusEnum.CONFIRMED, BookingStatusEnum.CANCELLED},
    ),
    BookingStatusEnum.CONFIRMED: frozenset(
        {BookingStatusEnum.IN_PROGRESS, BookingStatusEnum.CANCELLED},
    ),
    BookingStatusEnum.IN_PROGRESS: frozenset(
        {BookingStatusEnum.COMPLETED, BookingStatusEnum.CANCELLED},
    ),
    BookingStatusEnum.COMPLETED: frozenset(),
    BookingStatusEnum.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatusEnum, frozenset[PaymentStatusEnum]] = {
    PaymentStatusEnum.PENDING: frozenset({PaymentStatusEnum.AWAITING_REVIEW}),
    PaymentStatusEnum.AWAITING_REVIEW: frozenset(
        {PaymentStatusEnum.VERIFIED, PaymentStatusEnum.REJECTED},
    ),
    PaymentStatusEnum.REJECTED: frozenset({PaymentStatusEnum.AWAITING_REVIEW}),
    PaymentStatusEnum.VERIFIED: frozenset({PaymentStatusEnum.REFUNDED}),
    PaymentStatusEnum.REFUNDED: frozenset(),
}

INITIAL_BOOKING_STATUS = BookingStatusEnum.PENDING
INITIAL_PAYMENT_STATUS = PaymentStatusEnum.PENDING
INITIAL_INVOICE_STATUS = InvoiceStatusEnum.UNPAID


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    """Statuses a payment takes after an administrator decision."""

    payment_status: PaymentStatusEnum
    verification_status: VerificationStatusEnum
    rejection_reason: str | None
    invoice_status: InvoiceStatusEnum | None


@dataclass(frozen=True, slots=True)
class ProofSubmissionOutcome:
    """Statuses a payment takes when a proof of transfer is uploaded."""

    payment_status: PaymentStatusEnum
    verification_status: VerificationStatusEnum


def _reject(machine: str, current: str, target: str, message: str) -> IllegalTransitionException:
    LIFECYCLE_TRANSITIONS_TOTAL.labels(machine=machine, outcome="rejected").inc()
    logger.info("Rejected %s transition %s -> %s: %s", machine, current, target, message)
    return IllegalTransitionException(message, current=str(current), target=str(target))


def _accept(machine: str) -> None:
    LIFECYCLE_TRANSITIONS_TOTAL.labels(machine=machine, outcome="accepted").inc()


def is_terminal_booking_status(status: BookingStatusEnum) -> bool:
    return not BOOKING_TRANSITIONS[status]


def ensure_booking_transition(
    current: BookingStatusEnum,
    target: BookingStatusEnum,
    *,
    payment_status: PaymentStatusEnum | None,
) -> BookingStatusEnum:
    """Validate a booking status change and return the target status.

    Confirmation is additionally guarded by the payment machine: the
    booking's active payment must already be verified.
    """
    if target not in BOOKING_TRANSITIONS[current]:
        raise _reject(
            "booking",
            current,
            target,
            f"Invalid booking status transition: {current} -> {target}",
        )

    if target == BookingStatusEnum.CONFIRMED and payment_status != PaymentStatusEnum.VERIFIED:
        raise _reject(
            "booking",
            current,
            target,
            f"Booking cannot be confirmed while payment is {payment_status or 'missing'}",
        )

    _accept("booking")
    return target


def ensure_payment_transition(
    current: PaymentStatusEnum,
    target: PaymentStatusEnum,
    *,
    verification_status: VerificationStatusEnum | None = None,
) -> PaymentStatusEnum:
    """Validate a payment status change and return the target status."""
    if target not in PAYMENT_TRANSITIONS[current]:
        raise _reject(
            "payment",
            current,
            target,
            f"Invalid payment status transition: {current} -> {target}",
        )

    approved = verification_status == VerificationStatusEnum.APPROVED
    if target == PaymentStatusEnum.VERIFIED and not approved:
        raise _reject(
            "payment",
            current,
            target,
            "Payment can be verified only after an approved verification",
        )

    _accept("payment")
    return target


def submit_proof(
    current: PaymentStatusEnum,
    *,
    booking_status: BookingStatusEnum | None = None,
) -> ProofSubmissionOutcome:
    """Move a payment into review after a proof upload.

    A re-upload after rejection is flagged ``requires_review`` so the
    administrator sees it is a second attempt. Completed and cancelled
    bookings take no further proofs.
    """
    if booking_status is not None and is_terminal_booking_status(booking_status):
        raise _reject(
            "payment",
            current,
            PaymentStatusEnum.AWAITING_REVIEW,
            f"Payment proof cannot be submitted for a {booking_status} booking",
        )
    payment_status = ensure_payment_transition(current, PaymentStatusEnum.AWAITING_REVIEW)
    verification_status = (
        VerificationStatusEnum.REQUIRES_REVIEW
        if current == PaymentStatusEnum.REJECTED
        else VerificationStatusEnum.PENDING
    )
    return ProofSubmissionOutcome(
        payment_status=payment_status,
        verification_status=verification_status,
    )


def decide_verification(
    current: PaymentStatusEnum,
    decision: VerificationDecisionEnum,
    rejection_reason: str | None = None,
    *,
    invoice_status: InvoiceStatusEnum | None = None,
) -> VerificationOutcome:
    """Apply an administrator decision to a payment under review.

    The decision is the only way out of ``awaiting_review``; approval drops
    any reason supplied, rejection requires a non-blank one. A voided
    invoice cannot be paid by approving a late proof.
    """
    if decision == VerificationDecisionEnum.REJECTED:
        reason = (rejection_reason or "").strip()
        if not reason:
            raise ValidationFailedException(
                {"rejection_reason": "Rejection reason is required when rejecting a payment"},
            )
        payment_status = ensure_payment_transition(current, PaymentStatusEnum.REJECTED)
        return VerificationOutcome(
            payment_status=payment_status,
            verification_status=VerificationStatusEnum.REJECTED,
            rejection_reason=reason,
            invoice_status=None,
        )

    if current != PaymentStatusEnum.AWAITING_REVIEW:
        raise _reject(
            "payment",
            current,
            PaymentStatusEnum.VERIFIED,
            f"Only payments awaiting review can be approved, payment is {current}",
        )
    if invoice_status == InvoiceStatusEnum.VOID:
        raise _reject(
            "payment",
            current,
            PaymentStatusEnum.VERIFIED,
            "Payment cannot be approved against a void invoice",
        )
    payment_status = ensure_payment_transition(
        current,
        PaymentStatusEnum.VERIFIED,
        verification_status=VerificationStatusEnum.APPROVED,
    )
    return VerificationOutcome(
        payment_status=payment_status,
        verification_status=VerificationStatusEnum.APPROVED,
        rejection_reason=None,
        invoice_status=InvoiceStatusEnum.PAID,
    )


def refund(current: PaymentStatusEnum) -> PaymentStatusEnum:
    """Administrative reversal of a verified payment."""
    return ensure_payment_transition(current, PaymentStatusEnum.REFUNDED)


def invoice_status_after_booking_change(
    target: BookingStatusEnum,
    invoice_status: InvoiceStatusEnum,
) -> InvoiceStatusEnum:
    """Cancelling a booking voids an invoice nobody paid yet."""
    if target == BookingStatusEnum.CANCELLED and invoice_status == InvoiceStatusEnum.UNPAID:
        return InvoiceStatusEnum.VOID
    return invoice_status
