from __future__ import annotations

import pytest

from app.core.enums import (
    BookingStatusEnum,
    InvoiceStatusEnum,
    PaymentStatusEnum,
    VerificationDecisionEnum,
    VerificationStatusEnum,
)
from app.core.lifecycle import (
    BOOKING_TRANSITIONS,
    decide_verification,
    ensure_booking_transition,
    ensure_payment_transition,
    invoice_status_after_booking_change,
    is_terminal_booking_status,
    refund,
    submit_proof,
)
from app.shared.exceptions import IllegalTransitionException, ValidationFailedException

B = BookingStatusEnum
P = PaymentStatusEnum

ALLOWED_BOOKING_EDGES = {
    (B.PENDING, B.CONFIRMED),
    (B.PENDING, B.CANCELLED),
    (B.CONFIRMED, B.IN_PROGRESS),
    (B.CONFIRMED, B.CANCELLED),
    (B.IN_PROGRESS, B.COMPLETED),
    (B.IN_PROGRESS, B.CANCELLED),
}

ALLOWED_PAYMENT_EDGES = {
    (P.PENDING, P.AWAITING_REVIEW),
    (P.AWAITING_REVIEW, P.VERIFIED),
    (P.AWAITING_REVIEW, P.REJECTED),
    (P.REJECTED, P.AWAITING_REVIEW),
    (P.VERIFIED, P.REFUNDED),
}


@pytest.mark.parametrize("current", list(B))
@pytest.mark.parametrize("target", list(B))
def test_booking_transition_matrix(current: BookingStatusEnum, target: BookingStatusEnum) -> None:
    if (current, target) in ALLOWED_BOOKING_EDGES:
        assert ensure_booking_transition(current, target, payment_status=P.VERIFIED) == target
    else:
        with pytest.raises(IllegalTransitionException):
            ensure_booking_transition(current, target, payment_status=P.VERIFIED)


@pytest.mark.parametrize("current", list(P))
@pytest.mark.parametrize("target", list(P))
def test_payment_transition_matrix(current: PaymentStatusEnum, target: PaymentStatusEnum) -> None:
    if (current, target) in ALLOWED_PAYMENT_EDGES:
        result = ensure_payment_transition(
            current,
            target,
            verification_status=VerificationStatusEnum.APPROVED,
        )
        assert result == target
    else:
        with pytest.raises(IllegalTransitionException):
            ensure_payment_transition(
                current,
                target,
                verification_status=VerificationStatusEnum.APPROVED,
            )


def test_pending_booking_cannot_jump_to_completed() -> None:
    with pytest.raises(IllegalTransitionException) as exc:
        ensure_booking_transition(B.PENDING, B.COMPLETED, payment_status=P.VERIFIED)

    assert exc.value.current == "pending"
    assert exc.value.target == "completed"
    assert exc.value.status_code == 409


@pytest.mark.parametrize("payment_status", [None, P.PENDING, P.AWAITING_REVIEW, P.REJECTED])
def test_booking_confirmation_requires_verified_payment(
    payment_status: PaymentStatusEnum | None,
) -> None:
    with pytest.raises(IllegalTransitionException):
        ensure_booking_transition(B.PENDING, B.CONFIRMED, payment_status=payment_status)


def test_cancellation_does_not_depend_on_payment() -> None:
    target = ensure_booking_transition(B.PENDING, B.CANCELLED, payment_status=P.PENDING)
    assert target == B.CANCELLED


def test_terminal_booking_states_have_no_exits() -> None:
    assert is_terminal_booking_status(B.COMPLETED)
    assert is_terminal_booking_status(B.CANCELLED)
    assert BOOKING_TRANSITIONS[B.COMPLETED] == frozenset()


def test_payment_cannot_be_verified_without_approval() -> None:
    with pytest.raises(IllegalTransitionException):
        ensure_payment_transition(P.AWAITING_REVIEW, P.VERIFIED)


def test_first_proof_upload_moves_payment_into_review() -> None:
    outcome = submit_proof(P.PENDING)

    assert outcome.payment_status == P.AWAITING_REVIEW
    assert outcome.verification_status == VerificationStatusEnum.PENDING


def test_proof_reupload_after_rejection_is_flagged_for_review() -> None:
    outcome = submit_proof(P.REJECTED)

    assert outcome.payment_status == P.AWAITING_REVIEW
    assert outcome.verification_status == VerificationStatusEnum.REQUIRES_REVIEW


@pytest.mark.parametrize("current", [P.AWAITING_REVIEW, P.VERIFIED, P.REFUNDED])
def test_proof_upload_rejected_outside_pending_or_rejected(current: PaymentStatusEnum) -> None:
    with pytest.raises(IllegalTransitionException):
        submit_proof(current)


@pytest.mark.parametrize("booking_status", [B.CANCELLED, B.COMPLETED])
def test_proof_upload_rejected_for_closed_booking(booking_status: BookingStatusEnum) -> None:
    with pytest.raises(IllegalTransitionException) as exc:
        submit_proof(P.PENDING, booking_status=booking_status)

    assert exc.value.target == "awaiting_review"
    assert submit_proof(P.PENDING, booking_status=B.PENDING).payment_status == P.AWAITING_REVIEW


def test_approval_refused_against_void_invoice() -> None:
    with pytest.raises(IllegalTransitionException) as exc:
        decide_verification(
            P.AWAITING_REVIEW,
            VerificationDecisionEnum.APPROVED,
            invoice_status=InvoiceStatusEnum.VOID,
        )
    assert exc.value.message == "Payment cannot be approved against a void invoice"

    rejected = decide_verification(
        P.AWAITING_REVIEW,
        VerificationDecisionEnum.REJECTED,
        "Booking was cancelled",
        invoice_status=InvoiceStatusEnum.VOID,
    )
    assert rejected.payment_status == P.REJECTED


def test_approval_verifies_payment_and_marks_invoice_paid() -> None:
    outcome = decide_verification(P.AWAITING_REVIEW, VerificationDecisionEnum.APPROVED, "ignored")

    assert outcome.payment_status == P.VERIFIED
    assert outcome.verification_status == VerificationStatusEnum.APPROVED
    assert outcome.rejection_reason is None
    assert outcome.invoice_status == InvoiceStatusEnum.PAID


def test_rejection_records_trimmed_reason() -> None:
    outcome = decide_verification(
        P.AWAITING_REVIEW,
        VerificationDecisionEnum.REJECTED,
        "  Amount does not match  ",
    )

    assert outcome.payment_status == P.REJECTED
    assert outcome.verification_status == VerificationStatusEnum.REJECTED
    assert outcome.rejection_reason == "Amount does not match"
    assert outcome.invoice_status is None


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_rejection_without_reason_is_a_validation_error(reason: str | None) -> None:
    with pytest.raises(ValidationFailedException) as exc:
        decide_verification(P.AWAITING_REVIEW, VerificationDecisionEnum.REJECTED, reason)

    assert exc.value.field_errors == {
        "rejection_reason": "Rejection reason is required when rejecting a payment",
    }


@pytest.mark.parametrize("current", [P.PENDING, P.REJECTED, P.VERIFIED, P.REFUNDED])
@pytest.mark.parametrize(
    "decision",
    [VerificationDecisionEnum.APPROVED, VerificationDecisionEnum.REJECTED],
)
def test_decision_requires_payment_awaiting_review(
    current: PaymentStatusEnum,
    decision: VerificationDecisionEnum,
) -> None:
    with pytest.raises(IllegalTransitionException):
        decide_verification(current, decision, "Blurry proof")


def test_refund_only_from_verified() -> None:
    assert refund(P.VERIFIED) == P.REFUNDED
    with pytest.raises(IllegalTransitionException):
        refund(P.AWAITING_REVIEW)


@pytest.mark.parametrize(
    ("target", "invoice_status", "expected"),
    [
        (B.CANCELLED, InvoiceStatusEnum.UNPAID, InvoiceStatusEnum.VOID),
        (B.CANCELLED, InvoiceStatusEnum.PAID, InvoiceStatusEnum.PAID),
        (B.CONFIRMED, InvoiceStatusEnum.UNPAID, InvoiceStatusEnum.UNPAID),
    ],
)
def test_invoice_status_follows_booking_cancellation(
    target: BookingStatusEnum,
    invoice_status: InvoiceStatusEnum,
    expected: InvoiceStatusEnum,
) -> None:
    assert invoice_status_after_booking_change(target, invoice_status) == expected
