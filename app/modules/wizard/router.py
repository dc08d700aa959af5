"""Booking wizard session router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from app.modules.wizard.schemas import BookingSessionPayload, BookingSessionRead
from app.modules.wizard.service import WizardService, get_wizard_service

router = APIRouter(prefix="/brands/{slug}/booking-sessions", tags=["wizard"])


@router.post("", response_model=BookingSessionRead, status_code=status.HTTP_201_CREATED)
async def start_session(
    slug: str,
    payload: BookingSessionPayload,
    service: WizardService = Depends(get_wizard_service),
) -> BookingSessionRead:
    """Start a wizard session with the first step's data."""
    return await service.start(slug, payload)


@router.get("/{session_id}", response_model=BookingSessionRead)
async def load_session(
    slug: str,
    session_id: str,
    service: WizardService = Depends(get_wizard_service),
) -> BookingSessionRead:
    return await service.load(slug, session_id)


@router.put("/{session_id}", response_model=BookingSessionRead)
async def replace_session(
    slug: str,
    session_id: str,
    payload: BookingSessionPayload,
    service: WizardService = Depends(get_wizard_service),
) -> BookingSessionRead:
    """Replace the stored wizard state."""
    return await service.update(slug, session_id, payload)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_session(
    slug: str,
    session_id: str,
    service: WizardService = Depends(get_wizard_service),
) -> Response:
    await service.clear(slug, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
