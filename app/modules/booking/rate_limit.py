"""Rate-limit dependency for booking submission."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import Depends, Request

from app.core.container import AppContainer, get_container
from app.shared.exceptions import RateLimitException

logger = logging.getLogger(__name__)


def _trusted_proxy_ips(raw_value: object) -> set[str]:
    if raw_value is None:
        return set()
    if isinstance(raw_value, str):
        values: Iterable[object] = raw_value.split(",")
    elif isinstance(raw_value, tuple | list | set | frozenset):
        values = raw_value
    else:
        return set()

    return {str(value).strip() for value in values if str(value).strip()}


def resolve_client_ip(request: Request, *, trusted_proxy_ips: set[str]) -> str:
    """Peer address, or the forwarded client when the peer is a trusted proxy."""
    client_ip = "unknown"
    if request.client and request.client.host:
        client_ip = request.client.host

    if client_ip not in trusted_proxy_ips:
        return client_ip

    connecting_ip = (request.headers.get("cf-connecting-ip") or "").strip()
    if connecting_ip:
        return connecting_ip

    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for:
        return client_ip

    forwarded_client = forwarded_for.split(",")[0].strip()
    return forwarded_client or client_ip


async def enforce_booking_rate_limit(
    slug: str,
    request: Request,
    container: AppContainer = Depends(get_container),
) -> None:
    """Apply the brand's submission budget to the calling address.

    The limiter fails open when the store is unreachable (unless
    RATE_LIMIT_FAIL_OPEN is off): it throttles bursts from one address and
    is not an access-control boundary.
    """
    resolved_ip = resolve_client_ip(
        request,
        trusted_proxy_ips=_trusted_proxy_ips(container.settings.rate_limit_trusted_proxy_ips),
    )
    limiter = container.rate_limiter
    decision = await limiter.allow(
        f"booking:{resolved_ip}",
        container.booking_rate_limit_policy(slug),
    )
    if not decision.allowed:
        retry_after = decision.retry_after_seconds(limiter.now_ms())
        logger.info("Booking submission rate limited for %s", resolved_ip)
        raise RateLimitException(
            f"Too many booking requests. Try again in {retry_after} second(s).",
            reset_time=decision.reset_time,
            retry_after=retry_after,
        )
