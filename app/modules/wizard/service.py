"""Booking wizard session logic."""

from __future__ import annotations

import logging

from fastapi import Depends
from pydantic import ValidationError

from app.core.container import AppContainer, get_container
from app.core.sessions import SessionContinuityStore
from app.modules.catalog.service import CatalogService
from app.modules.wizard.schemas import BookingSessionPayload, BookingSessionRead
from app.shared.exceptions import NotFoundException

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Booking session not found or expired"


class WizardService:
    """Save and restore multi-step booking form state per brand."""

    def __init__(self, session_store: SessionContinuityStore, catalog: CatalogService) -> None:
        self.session_store = session_store
        self.catalog = catalog

    def _to_read(
        self,
        session_id: str,
        brand_slug: str,
        payload: BookingSessionPayload,
    ) -> BookingSessionRead:
        return BookingSessionRead(
            session_id=session_id,
            brand=brand_slug,
            step=payload.step,
            data=payload.data,
            expires_in=self.session_store.ttl_seconds,
        )

    @staticmethod
    def _record(brand_slug: str, payload: BookingSessionPayload) -> dict:
        return {"brand": brand_slug, **payload.model_dump(mode="json")}

    async def start(self, brand_slug: str, payload: BookingSessionPayload) -> BookingSessionRead:
        self.catalog.get_brand(brand_slug)
        session_id = self.session_store.new_session_id()
        await self.session_store.save(session_id, self._record(brand_slug, payload))
        return self._to_read(session_id, brand_slug, payload)

    async def load(self, brand_slug: str, session_id: str) -> BookingSessionRead:
        record = await self.session_store.load(session_id)
        if record is None or record.get("brand") != brand_slug:
            raise NotFoundException(SESSION_NOT_FOUND)
        try:
            payload = BookingSessionPayload.model_validate(record)
        except ValidationError:
            logger.warning("Dropping booking session with invalid payload")
            await self.session_store.clear(session_id)
            raise NotFoundException(SESSION_NOT_FOUND) from None
        return self._to_read(session_id, brand_slug, payload)

    async def update(
        self,
        brand_slug: str,
        session_id: str,
        payload: BookingSessionPayload,
    ) -> BookingSessionRead:
        """Replace the whole session payload; the session must still exist."""
        await self.load(brand_slug, session_id)
        replaced = await self.session_store.replace(session_id, self._record(brand_slug, payload))
        if not replaced:
            raise NotFoundException(SESSION_NOT_FOUND)
        return self._to_read(session_id, brand_slug, payload)

    async def clear(self, brand_slug: str, session_id: str) -> None:
        self.catalog.get_brand(brand_slug)
        await self.session_store.clear(session_id)


async def get_wizard_service(container: AppContainer = Depends(get_container)) -> WizardService:
    """Dependency provider for wizard service."""
    return WizardService(session_store=container.session_store, catalog=CatalogService())
