"""In-memory stand-ins for repositories and collaborators used by tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

from app.core.enums import PaymentMethodEnum, PaymentStatusEnum
from app.core.store import Mutator
from app.shared.exceptions import StoreUnavailableException
from app.shared.utils import utc_now


def future_iso(days: int = 7) -> str:
    return (utc_now() + timedelta(days=days)).isoformat()


def booking_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "customer_name": "Siti Rahma",
        "customer_email": "siti@example.com",
        "customer_phone": "081234567890",
        "service_id": 1,
        "duration": 90,
        "scheduled_date": future_iso(),
        "address": "Jl. Kemang Raya No. 10, Jakarta Selatan",
        "notes": "Birthday party for 30 kids",
    }
    payload.update(overrides)
    return payload


class FakeBookingRepository:
    def __init__(self) -> None:
        self.bookings: dict[UUID, SimpleNamespace] = {}
        self.commit_error: Exception | None = None
        self.commits = 0
        self._uncommitted: list[UUID] = []

    async def create_booking(self, **fields: Any) -> SimpleNamespace:
        now = utc_now()
        booking = SimpleNamespace(
            id=uuid4(),
            invoice=None,
            payment=None,
            confirmed_at=None,
            completed_at=None,
            cancelled_at=None,
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.bookings[booking.id] = booking
        self._uncommitted.append(booking.id)
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> SimpleNamespace | None:
        return self.bookings.get(booking_id)

    async def get_booking_by_number(self, booking_number: str) -> SimpleNamespace | None:
        for booking in self.bookings.values():
            if booking.booking_number == booking_number:
                return booking
        return None

    async def list_bookings(
        self,
        *,
        status: Any,
        date_from: datetime | None,
        date_to: datetime | None,
        limit: int,
        offset: int,
    ) -> tuple[list[SimpleNamespace], int]:
        items = [
            booking
            for booking in self.bookings.values()
            if (status is None or booking.status == status)
            and (date_from is None or booking.scheduled_date >= date_from)
            and (date_to is None or booking.scheduled_date < date_to)
        ]
        return items[offset : offset + limit], len(items)

    async def count_bookings(self) -> int:
        return len(self.bookings)

    async def save(self, booking: SimpleNamespace) -> SimpleNamespace:
        self.bookings[booking.id] = booking
        return booking

    async def commit(self) -> None:
        if self.commit_error is not None:
            for booking_id in self._uncommitted:
                self.bookings.pop(booking_id, None)
            self._uncommitted.clear()
            raise self.commit_error
        self._uncommitted.clear()
        self.commits += 1


class FakeBillingRepository:
    def __init__(self, booking_repository: FakeBookingRepository) -> None:
        self.booking_repository = booking_repository
        self.invoices: dict[UUID, SimpleNamespace] = {}
        self.payments: dict[UUID, SimpleNamespace] = {}

    async def create_invoice(self, *, booking_id: UUID, **fields: Any) -> SimpleNamespace:
        invoice = SimpleNamespace(id=uuid4(), booking_id=booking_id, paid_at=None, **fields)
        self.invoices[invoice.id] = invoice
        self.booking_repository.bookings[booking_id].invoice = invoice
        return invoice

    async def create_payment(
        self,
        *,
        booking_id: UUID,
        invoice_id: UUID,
        amount: Decimal,
        status: PaymentStatusEnum,
        method: PaymentMethodEnum = PaymentMethodEnum.BANK_TRANSFER,
    ) -> SimpleNamespace:
        now = utc_now()
        booking = self.booking_repository.bookings[booking_id]
        payment = SimpleNamespace(
            id=uuid4(),
            booking_id=booking_id,
            invoice_id=invoice_id,
            amount=amount,
            method=method,
            status=status,
            reference_number=None,
            bank_account=None,
            declared_amount=None,
            proof_url=None,
            submitted_at=None,
            verification_status=None,
            verified_by=None,
            verified_at=None,
            rejection_reason=None,
            created_at=now,
            updated_at=now,
            booking=booking,
            invoice=self.invoices[invoice_id],
        )
        self.payments[payment.id] = payment
        booking.payment = payment
        return payment

    async def get_payment_by_id(self, payment_id: UUID) -> SimpleNamespace | None:
        return self.payments.get(payment_id)

    async def list_payments(
        self,
        *,
        status: PaymentStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[SimpleNamespace], int]:
        items = [p for p in self.payments.values() if status is None or p.status == status]
        return items[offset : offset + limit], len(items)

    async def count_payments_by_status(self, status: PaymentStatusEnum) -> int:
        return sum(1 for payment in self.payments.values() if payment.status == status)

    async def sum_verified_since(self, since: datetime) -> Decimal:
        return sum(
            (
                payment.amount
                for payment in self.payments.values()
                if payment.status == PaymentStatusEnum.VERIFIED
                and payment.verified_at is not None
                and payment.verified_at >= since
            ),
            Decimal("0"),
        )

    async def save(self, payment: SimpleNamespace) -> SimpleNamespace:
        self.payments[payment.id] = payment
        return payment


class FakeProofStorage:
    def __init__(self) -> None:
        self.saved: list[tuple[bytes, str]] = []

    async def save(self, content: bytes, *, content_type: str) -> str:
        self.saved.append((content, content_type))
        return f"/uploads/payment-proofs/proof-{len(self.saved)}"


class UnavailableStore:
    """Store whose every call fails the way an unreachable backend does."""

    async def get(self, key: str) -> Any | None:
        raise StoreUnavailableException("Ephemeral store is unavailable (get)")

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raise StoreUnavailableException("Ephemeral store is unavailable (set)")

    async def delete(self, key: str) -> None:
        raise StoreUnavailableException("Ephemeral store is unavailable (delete)")

    async def pop(self, key: str) -> Any | None:
        raise StoreUnavailableException("Ephemeral store is unavailable (pop)")

    async def mutate(self, key: str, mutator: Mutator[Any]) -> Any:
        raise StoreUnavailableException("Ephemeral store is unavailable (mutate)")

    async def ping(self) -> bool:
        return False

    async def clear(self) -> None:
        return None

    async def close(self) -> None:
        return None
