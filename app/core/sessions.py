"""Short-lived wizard session storage on top of the ephemeral store."""

from __future__ import annotations

import logging
import re
from typing import Any

from app.core.security import generate_opaque_id
from app.core.store import EphemeralStore, StoreWrite

logger = logging.getLogger(__name__)

_SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{16,128}$")


class SessionContinuityStore:
    """Keyed temporary storage for partially completed multi-step forms.

    Every save replaces the whole payload and restarts the TTL. Store
    outages propagate as ``StoreUnavailableException``; ``load`` returns
    ``None`` only when the session really is absent or expired.
    """

    def __init__(
        self,
        store: EphemeralStore,
        *,
        ttl_seconds: int = 1800,
        key_prefix: str = "booking_session",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be greater than zero")
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    @staticmethod
    def new_session_id() -> str:
        return generate_opaque_id()

    @staticmethod
    def is_valid_session_id(session_id: str) -> bool:
        return bool(_SESSION_ID_PATTERN.match(session_id))

    def _build_key(self, session_id: str) -> str:
        return f"{self._key_prefix}:{session_id}"

    async def save(
        self,
        session_id: str,
        payload: dict[str, Any],
        ttl_seconds: int | None = None,
    ) -> None:
        if not self.is_valid_session_id(session_id):
            raise ValueError("Malformed session id")
        await self._store.set(
            self._build_key(session_id),
            payload,
            ttl_seconds or self._ttl_seconds,
        )

    async def replace(self, session_id: str, payload: dict[str, Any]) -> bool:
        """Overwrite an existing session; returns False when it is gone."""
        if not self.is_valid_session_id(session_id):
            return False

        def _overwrite(current: Any | None) -> tuple[StoreWrite | None, bool]:
            if current is None:
                return None, False
            return StoreWrite(payload, ttl_seconds=self._ttl_seconds), True

        return await self._store.mutate(self._build_key(session_id), _overwrite)

    async def load(self, session_id: str) -> dict[str, Any] | None:
        if not self.is_valid_session_id(session_id):
            return None
        payload = await self._store.get(self._build_key(session_id))
        if payload is not None and not isinstance(payload, dict):
            logger.warning("Discarding session %s with unexpected payload type", session_id)
            return None
        return payload

    async def clear(self, session_id: str) -> None:
        if not self.is_valid_session_id(session_id):
            return
        await self._store.delete(self._build_key(session_id))
