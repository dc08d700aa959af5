"""Billing ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin
from app.core.enums import (
    InvoiceStatusEnum,
    PaymentMethodEnum,
    PaymentStatusEnum,
    VerificationStatusEnum,
)

if TYPE_CHECKING:
    from app.modules.booking.models import Booking


class Invoice(BaseModelMixin, Base):
    """Invoice derived from a booking's price."""

    __tablename__ = "invoices"

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    invoice_number: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[InvoiceStatusEnum] = mapped_column(
        SAEnum(InvoiceStatusEnum, name="invoice_status_enum", native_enum=False),
        default=InvoiceStatusEnum.UNPAID,
        nullable=False,
    )
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    booking: Mapped[Booking] = relationship(back_populates="invoice")


class Payment(BaseModelMixin, Base):
    """Bank transfer claimed against a booking's invoice."""

    __tablename__ = "payments"

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[PaymentMethodEnum] = mapped_column(
        SAEnum(PaymentMethodEnum, name="payment_method_enum", native_enum=False),
        default=PaymentMethodEnum.BANK_TRANSFER,
        nullable=False,
    )
    status: Mapped[PaymentStatusEnum] = mapped_column(
        SAEnum(PaymentStatusEnum, name="payment_status_enum", native_enum=False),
        default=PaymentStatusEnum.PENDING,
        nullable=False,
        index=True,
    )

    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bank_account: Mapped[str | None] = mapped_column(String(100), nullable=True)
    declared_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    proof_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    verification_status: Mapped[VerificationStatusEnum | None] = mapped_column(
        SAEnum(VerificationStatusEnum, name="verification_status_enum", native_enum=False),
        nullable=True,
    )
    verified_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    booking: Mapped[Booking] = relationship(back_populates="payment")
    invoice: Mapped[Invoice] = relationship()
