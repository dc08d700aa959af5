"""Booking schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from app.core.enums import BookingStatusEnum, InvoiceStatusEnum, PaymentStatusEnum
from app.modules.catalog.schemas import BankDetails
from app.shared.utils import ensure_utc, utc_now


class CustomerDetails(BaseModel):
    """Customer contact block of the booking form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    error_messages: ClassVar[dict[str, str]] = {
        "customer_name.string_too_short": "Name must be at least 2 characters",
        "customer_name.string_too_long": "Name must be at most 100 characters",
        "customer_name.missing": "Name must be at least 2 characters",
        "customer_email.value_error": "Invalid email address",
        "customer_email.missing": "Invalid email address",
        "customer_phone.string_too_short": "Phone number must be at least 10 digits",
        "customer_phone.string_too_long": "Phone number must be at most 15 digits",
        "customer_phone.missing": "Phone number must be at least 10 digits",
    }

    customer_name: str = Field(min_length=2, max_length=100)
    customer_email: EmailStr
    customer_phone: str = Field(min_length=10, max_length=15)

    @field_validator("customer_email")
    @classmethod
    def validate_email_length(cls, value: str) -> str:
        if len(value) > 100:
            raise ValueError("Invalid email address")
        return value


class BookingDetails(BaseModel):
    """Service, schedule and location block of the booking form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    error_messages: ClassVar[dict[str, str]] = {
        "brand.string_too_short": "Brand is required",
        "brand.missing": "Brand is required",
        "service_id.greater_than": "Service is required",
        "service_id.missing": "Service is required",
        "service_id.int_parsing": "Service is required",
        "scheduled_date.missing": "Scheduled date is required",
        "scheduled_date.datetime_from_date_parsing": "Invalid date",
        "scheduled_date.datetime_parsing": "Invalid date",
        "duration.greater_than": "Duration must be positive",
        "duration.missing": "Duration is required",
        "duration.int_parsing": "Duration must be positive",
        "address.string_too_short": "Address must be at least 10 characters",
        "address.string_too_long": "Address must be at most 500 characters",
        "address.missing": "Address must be at least 10 characters",
        "notes.string_too_long": "Notes must be at most 1000 characters",
    }

    brand: str = Field(min_length=1, max_length=50)
    service_id: int = Field(gt=0)
    service_variant: str | None = Field(default=None, max_length=100)
    scheduled_date: datetime
    duration: int = Field(gt=0, description="Duration in minutes")
    address: str = Field(min_length=10, max_length=500)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("scheduled_date")
    @classmethod
    def validate_future_date(cls, value: datetime) -> datetime:
        value = ensure_utc(value)
        if value <= utc_now():
            raise ValueError("Scheduled date must be in the future")
        return value

    @field_validator("service_variant", "notes")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        return value or None


class BookingForm(CustomerDetails, BookingDetails):
    """Complete booking submission."""

    error_messages: ClassVar[dict[str, str]] = {
        **CustomerDetails.error_messages,
        **BookingDetails.error_messages,
    }

    session_id: str | None = Field(default=None, max_length=128)


class DateRangeFilter(BaseModel):
    """Inclusive date range used by admin listings."""

    start_date: date | None = None
    end_date: date | None = None

    @field_validator("end_date")
    @classmethod
    def validate_order(cls, value: date | None, info: ValidationInfo) -> date | None:
        start_date = info.data.get("start_date")
        if value and start_date and value < start_date:
            raise ValueError("End date must be on or after start date")
        return value


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_number: str
    brand_slug: str
    service_id: int
    service_name: str
    service_variant: str | None
    customer_name: str
    customer_email: str
    customer_phone: str
    scheduled_date: datetime
    duration_minutes: int
    address: str
    notes: str | None
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: BookingStatusEnum
    payment_status: PaymentStatusEnum
    confirmed_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BookingSummary(BaseModel):
    """Public view of a booking shown after submission."""

    booking_number: str
    brand_slug: str
    service_name: str
    service_variant: str | None
    scheduled_date: datetime
    duration_minutes: int
    total_amount: Decimal
    status: BookingStatusEnum
    payment_status: PaymentStatusEnum
    invoice_number: str | None
    invoice_status: InvoiceStatusEnum | None


class UploadTokenRead(BaseModel):
    upload_token: str
    expires_in: int
    allowed_content_types: list[str]


class BookingSubmissionRead(BaseModel):
    """Response for a successful booking submission."""

    booking_id: UUID
    booking_number: str
    invoice_number: str
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    due_date: datetime
    status: BookingStatusEnum
    payment_status: PaymentStatusEnum
    upload: UploadTokenRead
    bank: BankDetails


class UploadTokenRequest(BaseModel):
    """Customer asks for a new proof-upload token."""

    customer_email: EmailStr
