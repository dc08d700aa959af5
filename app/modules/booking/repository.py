"""Booking repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import BookingStatusEnum, PaymentStatusEnum
from app.modules.booking.models import Booking


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_booking(
        self,
        *,
        booking_number: str,
        brand_slug: str,
        service_id: int,
        service_name: str,
        service_variant: str | None,
        customer_name: str,
        customer_email: str,
        customer_phone: str,
        scheduled_date: datetime,
        duration_minutes: int,
        address: str,
        notes: str | None,
        subtotal: Decimal,
        tax_amount: Decimal,
        total_amount: Decimal,
        status: BookingStatusEnum,
        payment_status: PaymentStatusEnum,
    ) -> Booking:
        booking = Booking(
            booking_number=booking_number,
            brand_slug=brand_slug,
            service_id=service_id,
            service_name=service_name,
            service_variant=service_variant,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            scheduled_date=scheduled_date,
            duration_minutes=duration_minutes,
            address=address,
            notes=notes,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            status=status,
            payment_status=payment_status,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = (
            select(Booking)
            .options(selectinload(Booking.invoice), selectinload(Booking.payment))
            .where(Booking.id == booking_id)
        )
        return await self.session.scalar(stmt)

    async def get_booking_by_number(self, booking_number: str) -> Booking | None:
        stmt = (
            select(Booking)
            .options(selectinload(Booking.invoice), selectinload(Booking.payment))
            .where(Booking.booking_number == booking_number)
        )
        return await self.session.scalar(stmt)

    async def list_bookings(
        self,
        *,
        status: BookingStatusEnum | None,
        date_from: datetime | None,
        date_to: datetime | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        base_stmt: Select[tuple[Booking]] = select(Booking).options(
            selectinload(Booking.invoice),
            selectinload(Booking.payment),
        )
        if status is not None:
            base_stmt = base_stmt.where(Booking.status == status)
        if date_from is not None:
            base_stmt = base_stmt.where(Booking.scheduled_date >= date_from)
        if date_to is not None:
            base_stmt = base_stmt.where(Booking.scheduled_date < date_to)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Booking.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total

    async def count_bookings(self) -> int:
        return int((await self.session.scalar(select(func.count(Booking.id)))) or 0)

    async def save(self, booking: Booking) -> Booking:
        await self.session.flush()
        return booking

    async def commit(self) -> None:
        await self.session.commit()
