"""Fixed-window rate limiter on top of the ephemeral store."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.core.metrics import RATE_LIMIT_DECISIONS_TOTAL
from app.core.store import EphemeralStore, StoreWrite, ttl_from_millis
from app.shared.exceptions import StoreUnavailableException
from app.shared.utils import epoch_millis

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
    """Request budget per identifier: ``limit`` requests every ``window_ms``."""

    limit: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.window_ms <= 0:
            raise ValueError("window_ms must be greater than zero")


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of one admission check; ``reset_time`` is epoch milliseconds."""

    allowed: bool
    remaining: int
    reset_time: int

    def retry_after_seconds(self, now_ms: int) -> int:
        return max(1, math.ceil((self.reset_time - now_ms) / 1000))


class FixedWindowRateLimiter:
    """Count requests per identifier in fixed windows.

    State per identifier is one record ``{"count", "window_start"}``. The
    increment-then-check runs inside ``EphemeralStore.mutate`` so two
    requests racing on the same identifier cannot both read the old count.
    """

    def __init__(
        self,
        store: EphemeralStore,
        *,
        default_policy: RateLimitPolicy,
        fail_open: bool = True,
        key_prefix: str = "rate_limit",
        now_provider: Callable[[], int] | None = None,
    ) -> None:
        self._store = store
        self._default_policy = default_policy
        self._fail_open = fail_open
        self._key_prefix = key_prefix
        self._now = now_provider or epoch_millis

    @property
    def default_policy(self) -> RateLimitPolicy:
        return self._default_policy

    def now_ms(self) -> int:
        return self._now()

    def _build_key(self, identifier: str) -> str:
        return f"{self._key_prefix}:{identifier}"

    async def allow(
        self,
        identifier: str,
        policy: RateLimitPolicy | None = None,
    ) -> RateLimitDecision:
        """Try to admit one request for identifier."""
        policy = policy or self._default_policy
        now = self._now()

        if policy.limit <= 0:
            RATE_LIMIT_DECISIONS_TOTAL.labels(outcome="rejected").inc()
            return RateLimitDecision(allowed=False, remaining=0, reset_time=now + policy.window_ms)

        def _advance(
            record: Any | None,
        ) -> tuple[StoreWrite | None, RateLimitDecision]:
            if (
                not isinstance(record, dict)
                or now - int(record.get("window_start", 0)) >= policy.window_ms
            ):
                fresh = {"count": 1, "window_start": now}
                return (
                    StoreWrite(fresh, ttl_seconds=ttl_from_millis(policy.window_ms)),
                    RateLimitDecision(
                        allowed=True,
                        remaining=policy.limit - 1,
                        reset_time=now + policy.window_ms,
                    ),
                )

            window_start = int(record["window_start"])
            count = int(record.get("count", 0))
            reset_time = window_start + policy.window_ms
            if count >= policy.limit:
                return None, RateLimitDecision(allowed=False, remaining=0, reset_time=reset_time)

            count += 1
            return (
                StoreWrite({"count": count, "window_start": window_start}),
                RateLimitDecision(
                    allowed=True,
                    remaining=policy.limit - count,
                    reset_time=reset_time,
                ),
            )

        try:
            decision = await self._store.mutate(self._build_key(identifier), _advance)
        except StoreUnavailableException:
            if not self._fail_open:
                RATE_LIMIT_DECISIONS_TOTAL.labels(outcome="store_unavailable").inc()
                raise
            # Fail open: the limiter is a courtesy throttle, not a security
            # boundary, so an unreachable store admits the request.
            logger.warning("Rate limiter store unavailable, admitting %s", identifier)
            RATE_LIMIT_DECISIONS_TOTAL.labels(outcome="fail_open").inc()
            return RateLimitDecision(
                allowed=True,
                remaining=max(policy.limit - 1, 0),
                reset_time=now + policy.window_ms,
            )

        outcome = "allowed" if decision.allowed else "rejected"
        RATE_LIMIT_DECISIONS_TOTAL.labels(outcome=outcome).inc()
        return decision
