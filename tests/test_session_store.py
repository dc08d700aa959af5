from __future__ import annotations

import pytest

from app.core.sessions import SessionContinuityStore
from app.core.store import InMemoryEphemeralStore
from app.shared.exceptions import StoreUnavailableException
from tests.fakes import UnavailableStore


@pytest.mark.asyncio
async def test_saved_session_loads_back_and_save_replaces_whole_payload() -> None:
    sessions = SessionContinuityStore(InMemoryEphemeralStore(), ttl_seconds=60)
    session_id = sessions.new_session_id()

    await sessions.save(session_id, {"step": 1, "data": {"customer_name": "Siti"}})
    assert await sessions.load(session_id) == {"step": 1, "data": {"customer_name": "Siti"}}

    await sessions.save(session_id, {"step": 2, "data": {"service_id": 3}})
    assert await sessions.load(session_id) == {"step": 2, "data": {"service_id": 3}}


@pytest.mark.asyncio
async def test_session_expires_after_ttl_and_save_restarts_it() -> None:
    now_point = [0.0]
    sessions = SessionContinuityStore(
        InMemoryEphemeralStore(now_provider=lambda: now_point[0]),
        ttl_seconds=60,
    )
    session_id = sessions.new_session_id()
    await sessions.save(session_id, {"step": 1})

    now_point[0] = 50.0
    await sessions.save(session_id, {"step": 2})
    now_point[0] = 100.0
    assert await sessions.load(session_id) == {"step": 2}

    now_point[0] = 110.0
    assert await sessions.load(session_id) is None


@pytest.mark.asyncio
async def test_clear_removes_session() -> None:
    sessions = SessionContinuityStore(InMemoryEphemeralStore(), ttl_seconds=60)
    session_id = sessions.new_session_id()
    await sessions.save(session_id, {"step": 1})

    await sessions.clear(session_id)

    assert await sessions.load(session_id) is None


@pytest.mark.asyncio
async def test_replace_only_updates_live_sessions() -> None:
    sessions = SessionContinuityStore(InMemoryEphemeralStore(), ttl_seconds=60)
    session_id = sessions.new_session_id()

    assert await sessions.replace(session_id, {"step": 2}) is False
    assert await sessions.load(session_id) is None

    await sessions.save(session_id, {"step": 1})
    assert await sessions.replace(session_id, {"step": 2}) is True
    assert await sessions.load(session_id) == {"step": 2}


@pytest.mark.asyncio
async def test_malformed_session_ids_are_treated_as_absent() -> None:
    sessions = SessionContinuityStore(UnavailableStore(), ttl_seconds=60)

    assert await sessions.load("../etc/passwd") is None
    assert await sessions.replace("short", {"step": 1}) is False
    await sessions.clear("bad id")
    with pytest.raises(ValueError):
        await sessions.save("bad id", {"step": 1})


@pytest.mark.asyncio
async def test_store_outage_is_not_reported_as_missing_session() -> None:
    sessions = SessionContinuityStore(UnavailableStore(), ttl_seconds=60)

    with pytest.raises(StoreUnavailableException):
        await sessions.load(SessionContinuityStore.new_session_id())


def test_new_session_ids_are_valid_and_distinct() -> None:
    first = SessionContinuityStore.new_session_id()
    second = SessionContinuityStore.new_session_id()

    assert first != second
    assert SessionContinuityStore.is_valid_session_id(first)
