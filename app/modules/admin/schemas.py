"""Admin schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.core.enums import BookingStatusEnum


class AdminLoginRequest(BaseModel):
    """Administrator sign-in request."""

    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=256)


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class BookingStatusUpdate(BaseModel):
    """Target status for an administrator booking transition."""

    status: BookingStatusEnum


class AdminStatsRead(BaseModel):
    """Dashboard counters."""

    generated_at: datetime
    bookings_total: int
    payments_awaiting_review: int
    revenue_today: Decimal
    revenue_month: Decimal
