from __future__ import annotations

import asyncio

import pytest

from app.core.store import InMemoryEphemeralStore
from app.core.tokens import SingleUseTokenIssuer
from app.shared.exceptions import StoreUnavailableException
from tests.fakes import UnavailableStore


@pytest.mark.asyncio
async def test_token_is_redeemable_exactly_once() -> None:
    issuer = SingleUseTokenIssuer(InMemoryEphemeralStore(), ttl_seconds=60)
    token = await issuer.issue({"booking_id": "b-1", "payment_id": "p-1"})

    assert await issuer.verify_and_consume(token) == {"booking_id": "b-1", "payment_id": "p-1"}
    assert await issuer.verify_and_consume(token) is None


@pytest.mark.asyncio
async def test_concurrent_redemption_has_a_single_winner() -> None:
    issuer = SingleUseTokenIssuer(InMemoryEphemeralStore(), ttl_seconds=60)
    token = await issuer.issue({"booking_id": "b-1"})

    results = await asyncio.gather(*(issuer.verify_and_consume(token) for _ in range(10)))

    assert sum(1 for result in results if result is not None) == 1


@pytest.mark.asyncio
async def test_expired_token_is_rejected() -> None:
    now_point = [0.0]
    issuer = SingleUseTokenIssuer(
        InMemoryEphemeralStore(now_provider=lambda: now_point[0]),
        ttl_seconds=60,
    )
    token = await issuer.issue({"booking_id": "b-1"})

    now_point[0] = 60.0

    assert await issuer.verify_and_consume(token) is None


@pytest.mark.asyncio
async def test_malformed_token_is_rejected_without_store_access() -> None:
    issuer = SingleUseTokenIssuer(UnavailableStore(), ttl_seconds=60)

    assert await issuer.verify_and_consume("") is None
    assert await issuer.verify_and_consume("short") is None
    assert await issuer.verify_and_consume("x" * 40 + "/..") is None


@pytest.mark.asyncio
async def test_unknown_well_formed_token_is_rejected() -> None:
    issuer = SingleUseTokenIssuer(InMemoryEphemeralStore(), ttl_seconds=60)

    assert await issuer.verify_and_consume("A" * 43) is None


@pytest.mark.asyncio
async def test_tokens_are_unique_and_url_safe() -> None:
    issuer = SingleUseTokenIssuer(InMemoryEphemeralStore(), ttl_seconds=60)

    tokens = {await issuer.issue({"n": index}) for index in range(50)}

    assert len(tokens) == 50
    for token in tokens:
        assert len(token) >= 43
        assert all(char.isalnum() or char in "-_" for char in token)


@pytest.mark.asyncio
async def test_revoked_token_cannot_be_redeemed() -> None:
    issuer = SingleUseTokenIssuer(InMemoryEphemeralStore(), ttl_seconds=60)
    token = await issuer.issue({"booking_id": "b-1"})

    await issuer.revoke(token)

    assert await issuer.verify_and_consume(token) is None


@pytest.mark.asyncio
async def test_only_newest_token_per_subject_stays_live() -> None:
    issuer = SingleUseTokenIssuer(InMemoryEphemeralStore(), ttl_seconds=60)
    other = await issuer.issue({"payment_id": "p-2"}, subject="p-2")

    tokens = await asyncio.gather(
        *(issuer.issue({"payment_id": "p-1"}, subject="p-1") for _ in range(5)),
    )
    redeemed = [await issuer.verify_and_consume(token) for token in tokens]

    assert sum(1 for grant in redeemed if grant is not None) == 1
    assert await issuer.verify_and_consume(other) == {"payment_id": "p-2"}


@pytest.mark.asyncio
async def test_store_outage_surfaces_instead_of_reading_as_invalid_token() -> None:
    issuer = SingleUseTokenIssuer(UnavailableStore(), ttl_seconds=60)

    with pytest.raises(StoreUnavailableException):
        await issuer.verify_and_consume("A" * 43)


def test_issuer_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError):
        SingleUseTokenIssuer(InMemoryEphemeralStore(), ttl_seconds=0)
