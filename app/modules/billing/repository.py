"""Billing repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import InvoiceStatusEnum, PaymentMethodEnum, PaymentStatusEnum
from app.modules.billing.models import Invoice, Payment


class BillingRepository:
    """DB access methods for invoices and payments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_invoice(
        self,
        *,
        booking_id: UUID,
        invoice_number: str,
        subtotal: Decimal,
        tax_amount: Decimal,
        total_amount: Decimal,
        due_date: datetime,
        status: InvoiceStatusEnum,
    ) -> Invoice:
        invoice = Invoice(
            booking_id=booking_id,
            invoice_number=invoice_number,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            due_date=due_date,
            status=status,
        )
        self.session.add(invoice)
        await self.session.flush()
        return invoice

    async def create_payment(
        self,
        *,
        booking_id: UUID,
        invoice_id: UUID,
        amount: Decimal,
        status: PaymentStatusEnum,
        method: PaymentMethodEnum = PaymentMethodEnum.BANK_TRANSFER,
    ) -> Payment:
        payment = Payment(
            booking_id=booking_id,
            invoice_id=invoice_id,
            amount=amount,
            method=method,
            status=status,
        )
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get_payment_by_id(self, payment_id: UUID) -> Payment | None:
        stmt = (
            select(Payment)
            .options(selectinload(Payment.booking), selectinload(Payment.invoice))
            .where(Payment.id == payment_id)
        )
        return await self.session.scalar(stmt)

    async def list_payments(
        self,
        *,
        status: PaymentStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Payment], int]:
        base_stmt: Select[tuple[Payment]] = select(Payment).options(selectinload(Payment.booking))
        if status is not None:
            base_stmt = base_stmt.where(Payment.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Payment.updated_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total

    async def count_payments_by_status(self, status: PaymentStatusEnum) -> int:
        stmt = select(func.count(Payment.id)).where(Payment.status == status)
        return int((await self.session.scalar(stmt)) or 0)

    async def sum_verified_since(self, since: datetime) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.status == PaymentStatusEnum.VERIFIED,
            Payment.verified_at >= since,
        )
        return Decimal(str((await self.session.scalar(stmt)) or 0))

    async def save(self, payment: Payment) -> Payment:
        await self.session.flush()
        return payment
