from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

import app.main as main_module


def _request_with_store(store_ready: bool) -> SimpleNamespace:
    async def _ping() -> bool:
        return store_ready

    container = SimpleNamespace(store=SimpleNamespace(ping=_ping), session_factory=None)
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(container=container)))


@pytest.mark.asyncio
async def test_healthcheck_reports_ok() -> None:
    assert await main_module.healthcheck() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_check_returns_ready_when_dependencies_are_available(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _ready(_: object) -> bool:
        return True

    monkeypatch.setattr(main_module, "_is_database_ready", _ready)

    response = await main_module.readiness_check(_request_with_store(True))

    assert response["status"] == "ready"
    assert response["database"] == "ok"
    assert response["store"] == "ok"
    assert "timestamp" in response


@pytest.mark.asyncio
async def test_readiness_check_returns_503_when_database_is_unavailable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _not_ready(_: object) -> bool:
        return False

    monkeypatch.setattr(main_module, "_is_database_ready", _not_ready)

    with pytest.raises(HTTPException) as exc:
        await main_module.readiness_check(_request_with_store(True))
    assert exc.value.status_code == 503
    assert exc.value.detail == "Database is not ready"


@pytest.mark.asyncio
async def test_readiness_check_returns_503_when_store_is_unavailable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _ready(_: object) -> bool:
        return True

    monkeypatch.setattr(main_module, "_is_database_ready", _ready)

    with pytest.raises(HTTPException) as exc:
        await main_module.readiness_check(_request_with_store(False))
    assert exc.value.status_code == 503
    assert exc.value.detail == "Ephemeral store is not ready"


@pytest.mark.asyncio
async def test_database_is_not_ready_without_session_factory() -> None:
    container = SimpleNamespace(session_factory=None)

    assert await main_module._is_database_ready(container) is False
