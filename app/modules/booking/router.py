"""Booking API router."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from app.modules.booking.rate_limit import enforce_booking_rate_limit
from app.modules.booking.schemas import (
    BookingSubmissionRead,
    BookingSummary,
    UploadTokenRead,
    UploadTokenRequest,
)
from app.modules.booking.service import BookingService, get_booking_service

router = APIRouter(prefix="/brands/{slug}/bookings", tags=["booking"])


@router.post(
    "",
    response_model=BookingSubmissionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_booking_rate_limit)],
)
async def submit_booking(
    slug: str,
    payload: dict[str, Any] = Body(...),
    service: BookingService = Depends(get_booking_service),
) -> BookingSubmissionRead:
    """Submit the completed booking form."""
    return await service.submit_booking(slug, payload)


@router.get("/{booking_number}", response_model=BookingSummary)
async def get_booking_summary(
    slug: str,
    booking_number: str,
    service: BookingService = Depends(get_booking_service),
) -> BookingSummary:
    """Booking summary for the confirmation page."""
    return await service.get_summary(slug, booking_number)


@router.post(
    "/{booking_number}/upload-token",
    response_model=UploadTokenRead,
    dependencies=[Depends(enforce_booking_rate_limit)],
)
async def reissue_upload_token(
    slug: str,
    booking_number: str,
    payload: UploadTokenRequest,
    service: BookingService = Depends(get_booking_service),
) -> UploadTokenRead:
    """Issue a new proof-upload token (e.g. after a rejected proof)."""
    return await service.reissue_upload_token(slug, booking_number, str(payload.customer_email))
