"""Admin business logic layer."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.container import AppContainer, get_container
from app.core.database import get_db_session
from app.core.enums import (
    BookingStatusEnum,
    InvoiceStatusEnum,
    PaymentStatusEnum,
)
from app.core.lifecycle import (
    decide_verification,
    ensure_booking_transition,
    invoice_status_after_booking_change,
    refund,
)
from app.core.security import (
    ADMIN_ROLE,
    create_access_token,
    decode_token,
    oauth2_scheme,
    verify_admin_credentials,
)
from app.modules.admin.schemas import AccessToken, AdminLoginRequest, AdminStatsRead
from app.modules.billing.models import Payment
from app.modules.billing.repository import BillingRepository
from app.modules.billing.schemas import VerificationDecision
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.booking.schemas import DateRangeFilter
from app.modules.validation import validate
from app.shared.exceptions import (
    NotFoundException,
    UnauthenticatedException,
    UnauthorizedException,
)
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

_STATUS_TIMESTAMPS = {
    BookingStatusEnum.CONFIRMED: "confirmed_at",
    BookingStatusEnum.COMPLETED: "completed_at",
    BookingStatusEnum.CANCELLED: "cancelled_at",
}


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def login_admin(settings: Settings, payload: AdminLoginRequest) -> AccessToken:
    """Exchange administrator credentials for a bearer token."""
    if not verify_admin_credentials(settings, payload.username, payload.password):
        logger.warning("Failed admin login for %r", payload.username)
        raise UnauthenticatedException("Invalid credentials")
    token = create_access_token(settings, payload.username, role=ADMIN_ROLE)
    return AccessToken(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


class AdminService:
    """Administrator workflow over bookings and payments."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        billing_repository: BillingRepository,
    ) -> None:
        self.booking_repository = booking_repository
        self.billing_repository = billing_repository

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _get_payment(self, payment_id: UUID) -> Payment:
        payment = await self.billing_repository.get_payment_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Payment not found")
        return payment

    async def transition_booking(self, booking_id: UUID, target: BookingStatusEnum) -> Booking:
        """Move a booking along its lifecycle; confirmation needs a verified payment."""
        booking = await self._get_booking(booking_id)
        payment_status = booking.payment.status if booking.payment is not None else None
        booking.status = ensure_booking_transition(
            booking.status,
            target,
            payment_status=payment_status,
        )

        timestamp_field = _STATUS_TIMESTAMPS.get(target)
        if timestamp_field is not None:
            setattr(booking, timestamp_field, utc_now())
        if booking.invoice is not None:
            booking.invoice.status = invoice_status_after_booking_change(
                target,
                booking.invoice.status,
            )

        await self.booking_repository.save(booking)
        logger.info("Booking %s moved to %s", booking.booking_number, target)
        return booking

    async def decide_verification(
        self,
        payment_id: UUID,
        decision: VerificationDecision,
        admin_username: str,
    ) -> Payment:
        """Approve or reject a payment that is awaiting review."""
        payment = await self._get_payment(payment_id)
        outcome = decide_verification(
            payment.status,
            decision.status,
            decision.rejection_reason,
            invoice_status=payment.invoice.status if payment.invoice is not None else None,
        )

        payment.status = outcome.payment_status
        payment.verification_status = outcome.verification_status
        payment.rejection_reason = outcome.rejection_reason
        payment.verified_by = admin_username
        payment.verified_at = utc_now()
        if outcome.invoice_status is not None:
            payment.invoice.status = outcome.invoice_status
            if outcome.invoice_status == InvoiceStatusEnum.PAID:
                payment.invoice.paid_at = payment.verified_at
        payment.booking.payment_status = outcome.payment_status

        await self.billing_repository.save(payment)
        logger.info(
            "Payment %s %s by %s",
            payment.id,
            outcome.verification_status,
            admin_username,
        )
        return payment

    async def refund_payment(self, payment_id: UUID) -> Payment:
        payment = await self._get_payment(payment_id)
        payment.status = refund(payment.status)
        payment.invoice.status = InvoiceStatusEnum.REFUNDED
        payment.booking.payment_status = payment.status
        await self.billing_repository.save(payment)
        logger.info("Payment %s refunded", payment.id)
        return payment

    async def list_bookings(
        self,
        *,
        status: BookingStatusEnum | None,
        date_range: dict[str, Any],
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        """List bookings, optionally by status and scheduled date range."""
        period: DateRangeFilter = validate("date_range", date_range).unwrap()
        return await self.booking_repository.list_bookings(
            status=status,
            date_from=_day_start(period.start_date) if period.start_date else None,
            date_to=_day_start(period.end_date + timedelta(days=1)) if period.end_date else None,
            limit=limit,
            offset=offset,
        )

    async def list_payments(
        self,
        *,
        status: PaymentStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Payment], int]:
        return await self.billing_repository.list_payments(
            status=status,
            limit=limit,
            offset=offset,
        )

    async def get_stats(self) -> AdminStatsRead:
        now = utc_now()
        today = _day_start(now.date())
        return AdminStatsRead(
            generated_at=now,
            bookings_total=await self.booking_repository.count_bookings(),
            payments_awaiting_review=await self.billing_repository.count_payments_by_status(
                PaymentStatusEnum.AWAITING_REVIEW,
            ),
            revenue_today=await self.billing_repository.sum_verified_since(today),
            revenue_month=await self.billing_repository.sum_verified_since(
                today.replace(day=1),
            ),
        )


async def get_current_admin(
    token: str | None = Depends(oauth2_scheme),
    container: AppContainer = Depends(get_container),
) -> str:
    """Resolve the administrator from the bearer token."""
    if not token:
        raise UnauthenticatedException("Not authenticated")
    payload = decode_token(container.settings, token)
    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthenticatedException("Invalid token")
    if payload.get("role") != ADMIN_ROLE:
        raise UnauthorizedException("Administrator access required")
    return str(payload["sub"])


async def get_admin_service(session: AsyncSession = Depends(get_db_session)) -> AdminService:
    """Dependency provider for admin service."""
    return AdminService(
        booking_repository=BookingRepository(session),
        billing_repository=BillingRepository(session),
    )
