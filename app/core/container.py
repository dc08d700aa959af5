"""Explicitly wired application components.

Everything stateful (store handle, limiter, token issuer, DB engine) is
built once here at startup and closed at shutdown; request handlers reach
it through ``request.app.state.container``.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory
from app.core.proof_storage import LocalProofStorage, ProofStorage
from app.core.rate_limit import FixedWindowRateLimiter, RateLimitPolicy
from app.core.sessions import SessionContinuityStore
from app.core.store import EphemeralStore, build_store
from app.core.tokens import SingleUseTokenIssuer


@dataclass
class AppContainer:
    settings: Settings
    store: EphemeralStore
    rate_limiter: FixedWindowRateLimiter
    session_store: SessionContinuityStore
    token_issuer: SingleUseTokenIssuer
    proof_storage: ProofStorage
    engine: AsyncEngine | None
    session_factory: async_sessionmaker[AsyncSession] | None

    def booking_rate_limit_policy(self, brand_slug: str) -> RateLimitPolicy:
        return RateLimitPolicy(
            limit=self.settings.booking_rate_limit_for(brand_slug),
            window_ms=self.settings.booking_rate_limit_window_ms,
        )

    async def close(self) -> None:
        await self.store.close()
        if self.engine is not None:
            await self.engine.dispose()


def build_container(
    settings: Settings,
    *,
    store: EphemeralStore | None = None,
    engine: AsyncEngine | None = None,
    proof_storage: ProofStorage | None = None,
    with_database: bool = True,
) -> AppContainer:
    """Assemble components from settings; arguments replace single parts."""
    store = store or build_store(settings)
    if engine is None and with_database:
        engine = build_engine(settings)

    return AppContainer(
        settings=settings,
        store=store,
        rate_limiter=FixedWindowRateLimiter(
            store,
            default_policy=RateLimitPolicy(
                limit=settings.booking_rate_limit_requests,
                window_ms=settings.booking_rate_limit_window_ms,
            ),
            fail_open=settings.rate_limit_fail_open,
        ),
        session_store=SessionContinuityStore(
            store,
            ttl_seconds=settings.booking_session_ttl_seconds,
        ),
        token_issuer=SingleUseTokenIssuer(store, ttl_seconds=settings.upload_token_ttl_seconds),
        proof_storage=proof_storage or LocalProofStorage(settings.upload_storage_dir),
        engine=engine,
        session_factory=build_session_factory(engine) if engine is not None else None,
    )


def get_container(request: Request) -> AppContainer:
    """FastAPI dependency returning the container built at startup."""
    return request.app.state.container
