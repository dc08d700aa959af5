"""Booking wizard session schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class BookingSessionPayload(BaseModel):
    """Accumulated wizard state posted by each step."""

    step: int = Field(ge=1, le=4)
    data: dict[str, Any] = Field(default_factory=dict)


class BookingSessionRead(BookingSessionPayload):
    session_id: str
    brand: str
    expires_in: int
