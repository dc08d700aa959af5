"""Admin API router."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from app.core.container import AppContainer, get_container
from app.core.enums import BookingStatusEnum, PaymentStatusEnum
from app.modules.admin.schemas import (
    AccessToken,
    AdminLoginRequest,
    AdminStatsRead,
    BookingStatusUpdate,
)
from app.modules.admin.service import (
    AdminService,
    get_admin_service,
    get_current_admin,
    login_admin,
)
from app.modules.billing.schemas import PaymentRead, VerificationDecision
from app.modules.booking.schemas import BookingRead
from app.modules.validation import validate
from app.shared.pagination import Page, PageWindow, build_page, get_page_window

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/auth/login", response_model=AccessToken)
async def login(
    payload: AdminLoginRequest,
    container: AppContainer = Depends(get_container),
) -> AccessToken:
    """Sign in as administrator and return a bearer token."""
    return login_admin(container.settings, payload)


@router.get("/bookings", response_model=Page[BookingRead])
async def list_bookings(
    status: BookingStatusEnum | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    pagination: PageWindow = Depends(get_page_window),
    service: AdminService = Depends(get_admin_service),
    current_admin: str = Depends(get_current_admin),
) -> Page[BookingRead]:
    """List bookings filtered by status and scheduled date."""
    items, total = await service.list_bookings(
        status=status,
        date_range={"start_date": start_date, "end_date": end_date},
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.post("/bookings/{booking_id}/status", response_model=BookingRead)
async def transition_booking(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    service: AdminService = Depends(get_admin_service),
    current_admin: str = Depends(get_current_admin),
) -> BookingRead:
    """Move a booking to another lifecycle status."""
    booking = await service.transition_booking(booking_id, payload.status)
    return BookingRead.model_validate(booking)


@router.get("/payments", response_model=Page[PaymentRead])
async def list_payments(
    status: PaymentStatusEnum | None = Query(default=None),
    pagination: PageWindow = Depends(get_page_window),
    service: AdminService = Depends(get_admin_service),
    current_admin: str = Depends(get_current_admin),
) -> Page[PaymentRead]:
    """List payments, e.g. the ones awaiting review."""
    items, total = await service.list_payments(
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [PaymentRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.post("/payments/{payment_id}/verification", response_model=PaymentRead)
async def decide_verification(
    payment_id: UUID,
    payload: dict[str, Any] = Body(...),
    service: AdminService = Depends(get_admin_service),
    current_admin: str = Depends(get_current_admin),
) -> PaymentRead:
    """Approve or reject a payment proof."""
    decision: VerificationDecision = validate("verification", payload).unwrap()
    payment = await service.decide_verification(payment_id, decision, current_admin)
    return PaymentRead.model_validate(payment)


@router.post("/payments/{payment_id}/refund", response_model=PaymentRead)
async def refund_payment(
    payment_id: UUID,
    service: AdminService = Depends(get_admin_service),
    current_admin: str = Depends(get_current_admin),
) -> PaymentRead:
    """Refund a verified payment."""
    payment = await service.refund_payment(payment_id)
    return PaymentRead.model_validate(payment)


@router.get("/stats", response_model=AdminStatsRead)
async def get_stats(
    service: AdminService = Depends(get_admin_service),
    current_admin: str = Depends(get_current_admin),
) -> AdminStatsRead:
    """Dashboard counters."""
    return await service.get_stats()
