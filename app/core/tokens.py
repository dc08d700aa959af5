"""Single-use tokens backed by the ephemeral store."""

from __future__ import annotations

import logging
import re
import secrets
from typing import Any

from app.core.metrics import UPLOAD_TOKENS_TOTAL
from app.core.store import EphemeralStore, StoreWrite

logger = logging.getLogger(__name__)

# 32 random bytes, i.e. 256 bits of entropy per token.
TOKEN_BYTES = 32

_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{32,128}$")


class SingleUseTokenIssuer:
    """Issue opaque tokens that can be redeemed exactly once.

    Redemption goes through ``EphemeralStore.pop`` so the read and the
    delete happen in one atomic step: of any number of concurrent callers
    presenting the same token, only one gets the metadata back.
    """

    def __init__(
        self,
        store: EphemeralStore,
        *,
        ttl_seconds: int = 3600,
        key_prefix: str = "upload_token",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be greater than zero")
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def _build_key(self, token: str) -> str:
        return f"{self._key_prefix}:{token}"

    def _subject_key(self, subject: str) -> str:
        return f"{self._key_prefix}_current:{subject}"

    async def issue(
        self,
        metadata: dict[str, Any],
        ttl_seconds: int | None = None,
        *,
        subject: str | None = None,
    ) -> str:
        """Store metadata under a fresh token and return the token.

        With ``subject`` only the newest token per subject stays live: the
        pointer swap is atomic and each issuer revokes the token it replaced.
        """
        token = secrets.token_urlsafe(TOKEN_BYTES)
        ttl = ttl_seconds or self._ttl_seconds
        await self._store.set(self._build_key(token), metadata, ttl)
        UPLOAD_TOKENS_TOTAL.labels(event="issued").inc()

        if subject is not None:
            previous = await self._store.mutate(
                self._subject_key(subject),
                lambda current: (StoreWrite(token, ttl), current),
            )
            if isinstance(previous, str) and previous != token:
                await self.revoke(previous)
        return token

    async def verify_and_consume(self, token: str) -> dict[str, Any] | None:
        """Return the token's metadata and destroy it, or None.

        Unknown, expired, malformed and already redeemed tokens are
        indistinguishable to the caller.
        """
        if not _TOKEN_PATTERN.match(token or ""):
            UPLOAD_TOKENS_TOTAL.labels(event="rejected").inc()
            return None

        metadata = await self._store.pop(self._build_key(token))
        if not isinstance(metadata, dict):
            logger.debug("Upload token miss")
            UPLOAD_TOKENS_TOTAL.labels(event="rejected").inc()
            return None

        UPLOAD_TOKENS_TOTAL.labels(event="consumed").inc()
        return metadata

    async def revoke(self, token: str) -> None:
        if _TOKEN_PATTERN.match(token or ""):
            await self._store.delete(self._build_key(token))
            UPLOAD_TOKENS_TOTAL.labels(event="revoked").inc()
