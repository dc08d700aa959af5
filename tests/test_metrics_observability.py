from __future__ import annotations

import pytest
from fastapi import Request, Response

import app.main as main_module
from app.core.metrics import build_metrics_response, instrument_http_request
from app.core.rate_limit import FixedWindowRateLimiter, RateLimitPolicy
from app.core.store import InMemoryEphemeralStore
from app.core.tokens import SingleUseTokenIssuer


def _make_request(path: str) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": b"",
    }
    return Request(scope)


@pytest.mark.asyncio
async def test_http_metrics_instrumentation_tracks_status_and_path() -> None:
    async def _no_content(_: Request) -> Response:
        return Response(status_code=204)

    request = _make_request("/health")
    await instrument_http_request(request, _no_content)

    payload = build_metrics_response().body.decode("utf-8")
    assert "talazar_http_requests_total" in payload
    assert 'path="/health"' in payload
    assert 'status_code="204"' in payload


@pytest.mark.asyncio
async def test_http_metrics_record_500_when_handler_raises() -> None:
    async def _boom(_: Request) -> Response:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await instrument_http_request(_make_request("/explode"), _boom)

    payload = build_metrics_response().body.decode("utf-8")
    assert 'path="/explode"' in payload
    assert 'status_code="500"' in payload


@pytest.mark.asyncio
async def test_coordination_counters_are_exported() -> None:
    store = InMemoryEphemeralStore()
    limiter = FixedWindowRateLimiter(
        store,
        default_policy=RateLimitPolicy(limit=1, window_ms=1_000),
    )
    issuer = SingleUseTokenIssuer(store, ttl_seconds=60)

    await limiter.allow("metrics-test")
    await limiter.allow("metrics-test")
    token = await issuer.issue({"booking_id": "b-1"})
    await issuer.verify_and_consume(token)

    payload = build_metrics_response().body.decode("utf-8")
    assert 'talazar_rate_limit_decisions_total{outcome="allowed"}' in payload
    assert 'talazar_rate_limit_decisions_total{outcome="rejected"}' in payload
    assert 'talazar_upload_tokens_total{event="issued"}' in payload
    assert 'talazar_upload_tokens_total{event="consumed"}' in payload


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_prometheus_payload() -> None:
    response = await main_module.metrics_endpoint(_make_request("/metrics"))
    payload = response.body.decode("utf-8")

    assert response.status_code == 200
    assert "talazar_http_requests_total" in payload
