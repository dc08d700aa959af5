"""Booking business logic layer."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.container import AppContainer, get_container
from app.core.database import get_db_session
from app.core.enums import PaymentStatusEnum
from app.core.lifecycle import (
    INITIAL_BOOKING_STATUS,
    INITIAL_INVOICE_STATUS,
    INITIAL_PAYMENT_STATUS,
    is_terminal_booking_status,
)
from app.core.sessions import SessionContinuityStore
from app.core.tokens import SingleUseTokenIssuer
from app.modules.billing.models import Payment
from app.modules.billing.repository import BillingRepository
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.booking.schemas import (
    BookingForm,
    BookingSubmissionRead,
    BookingSummary,
    UploadTokenRead,
)
from app.modules.catalog.service import CatalogService, bank_details_from_settings
from app.modules.validation import validate
from app.shared.exceptions import (
    ConflictException,
    NotFoundException,
    StoreUnavailableException,
    ValidationFailedException,
)
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_UPLOADABLE_PAYMENT_STATUSES = frozenset({PaymentStatusEnum.PENDING, PaymentStatusEnum.REJECTED})


def generate_booking_number(brand_slug: str) -> str:
    """``<SLUG>-<yyyymmdd>-<6 hex>``, e.g. ``PUFFY-20261019-3FA2C1``."""
    return f"{brand_slug.upper()}-{utc_now():%Y%m%d}-{secrets.token_hex(3).upper()}"


def invoice_number_for(booking_number: str) -> str:
    return f"INV-{booking_number}"


def calculate_totals(subtotal: Decimal, tax_rate: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    subtotal = subtotal.quantize(_CENT, rounding=ROUND_HALF_UP)
    tax_amount = (subtotal * tax_rate).quantize(_CENT, rounding=ROUND_HALF_UP)
    return subtotal, tax_amount, subtotal + tax_amount


class BookingService:
    """Public booking flow: submission, summary and proof-upload tokens."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        billing_repository: BillingRepository,
        catalog: CatalogService,
        token_issuer: SingleUseTokenIssuer,
        session_store: SessionContinuityStore,
        settings: Settings,
    ) -> None:
        self.booking_repository = booking_repository
        self.billing_repository = billing_repository
        self.catalog = catalog
        self.token_issuer = token_issuer
        self.session_store = session_store
        self.settings = settings

    async def _issue_upload_token(self, booking: Booking, payment: Payment) -> UploadTokenRead:
        allowed_types = list(self.settings.upload_allowed_content_types)
        token = await self.token_issuer.issue(
            {
                "booking_id": str(booking.id),
                "payment_id": str(payment.id),
                "booking_number": booking.booking_number,
                "allowed_content_types": allowed_types,
            },
            subject=str(payment.id),
        )
        return UploadTokenRead(
            upload_token=token,
            expires_in=self.token_issuer.ttl_seconds,
            allowed_content_types=allowed_types,
        )

    async def _discard_wizard_session(self, session_id: str | None) -> None:
        if not session_id:
            return
        try:
            await self.session_store.clear(session_id)
        except StoreUnavailableException:
            # The session expires on its own; the booking is already stored.
            logger.warning("Could not clear wizard session after booking submission")

    async def submit_booking(self, brand_slug: str, raw: dict[str, Any]) -> BookingSubmissionRead:
        """Validate, price and persist a booking with its invoice and payment."""
        self.catalog.get_brand(brand_slug)
        form: BookingForm = validate("booking_form", {**raw, "brand": brand_slug}).unwrap()

        service = self.catalog.get_service(brand_slug, form.service_id)
        if service is None:
            raise ValidationFailedException({"service_id": "Service not found"})
        subtotal, tax_amount, total_amount = calculate_totals(
            self.catalog.resolve_price(service, form.service_variant),
            self.settings.booking_tax_rate,
        )

        booking = await self.booking_repository.create_booking(
            booking_number=generate_booking_number(brand_slug),
            brand_slug=brand_slug,
            service_id=service.id or form.service_id,
            service_name=service.name,
            service_variant=form.service_variant,
            customer_name=form.customer_name,
            customer_email=str(form.customer_email).lower(),
            customer_phone=form.customer_phone,
            scheduled_date=form.scheduled_date,
            duration_minutes=form.duration,
            address=form.address,
            notes=form.notes,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            status=INITIAL_BOOKING_STATUS,
            payment_status=INITIAL_PAYMENT_STATUS,
        )
        invoice = await self.billing_repository.create_invoice(
            booking_id=booking.id,
            invoice_number=invoice_number_for(booking.booking_number),
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            due_date=utc_now() + timedelta(hours=self.settings.invoice_due_hours),
            status=INITIAL_INVOICE_STATUS,
        )
        payment = await self.billing_repository.create_payment(
            booking_id=booking.id,
            invoice_id=invoice.id,
            amount=total_amount,
            status=INITIAL_PAYMENT_STATUS,
        )

        upload = await self._issue_upload_token(booking, payment)
        try:
            await self.booking_repository.commit()
        except SQLAlchemyError:
            await self.token_issuer.revoke(upload.upload_token)
            raise
        # Only a durable booking may consume the wizard session.
        await self._discard_wizard_session(form.session_id)
        logger.info("Booking %s submitted for brand %s", booking.booking_number, brand_slug)

        return BookingSubmissionRead(
            booking_id=booking.id,
            booking_number=booking.booking_number,
            invoice_number=invoice.invoice_number,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            due_date=invoice.due_date,
            status=booking.status,
            payment_status=payment.status,
            upload=upload,
            bank=bank_details_from_settings(self.settings),
        )

    async def _get_brand_booking(self, brand_slug: str, booking_number: str) -> Booking:
        booking = await self.booking_repository.get_booking_by_number(booking_number)
        if booking is None or booking.brand_slug != brand_slug:
            raise NotFoundException("Booking not found")
        return booking

    async def get_summary(self, brand_slug: str, booking_number: str) -> BookingSummary:
        booking = await self._get_brand_booking(brand_slug, booking_number)
        invoice = booking.invoice
        return BookingSummary(
            booking_number=booking.booking_number,
            brand_slug=booking.brand_slug,
            service_name=booking.service_name,
            service_variant=booking.service_variant,
            scheduled_date=booking.scheduled_date,
            duration_minutes=booking.duration_minutes,
            total_amount=booking.total_amount,
            status=booking.status,
            payment_status=booking.payment_status,
            invoice_number=invoice.invoice_number if invoice else None,
            invoice_status=invoice.status if invoice else None,
        )

    async def reissue_upload_token(
        self,
        brand_slug: str,
        booking_number: str,
        customer_email: str,
    ) -> UploadTokenRead:
        """Mint a fresh proof-upload token for the booking's customer."""
        booking = await self._get_brand_booking(brand_slug, booking_number)
        if booking.customer_email.lower() != customer_email.strip().lower():
            raise NotFoundException("Booking not found")

        if is_terminal_booking_status(booking.status):
            raise ConflictException(
                f"Payment proof cannot be uploaded for a {booking.status} booking",
            )
        payment = booking.payment
        if payment is None:
            raise ConflictException("Booking has no payment to attach a proof to")
        if payment.status not in _UPLOADABLE_PAYMENT_STATUSES:
            raise ConflictException(
                f"Payment proof cannot be uploaded while payment is {payment.status}",
            )
        return await self._issue_upload_token(booking, payment)


async def get_booking_service(
    session: AsyncSession = Depends(get_db_session),
    container: AppContainer = Depends(get_container),
) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(
        booking_repository=BookingRepository(session),
        billing_repository=BillingRepository(session),
        catalog=CatalogService(),
        token_issuer=container.token_issuer,
        session_store=container.session_store,
        settings=container.settings,
    )
