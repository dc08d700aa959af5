"""Ephemeral key-value store backends (in-memory and Redis).

Every value crosses the store boundary as a JSON string, so both backends
round-trip the same shapes (numbers, strings, lists, nested mappings) and
callers never share mutable objects with the store.

Read-modify-write goes through ``mutate``: the mutator receives the current
value (``None`` when absent or expired) and returns ``(write, result)``.
``write`` is ``None`` to leave the key untouched. Mutators must be plain,
fast functions without I/O because backends may call them more than once
(Redis retries the whole cycle when a concurrent writer wins the race).
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from redis.exceptions import RedisError, WatchError

from app.core.config import Settings
from app.core.metrics import STORE_ERRORS_TOTAL
from app.shared.exceptions import StoreUnavailableException

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StoreWrite:
    """Value a mutator wants persisted.

    ``ttl_seconds=None`` keeps the expiry the key already has; it is an
    error when the key does not exist yet.
    """

    value: Any
    ttl_seconds: int | None = None


Mutator = Callable[[Any | None], tuple[StoreWrite | None, T]]


def encode_value(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def decode_value(raw: str | bytes | None) -> Any | None:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding undecodable ephemeral store value")
        return None


def _validate_ttl(ttl_seconds: int) -> int:
    if ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be greater than zero")
    return ttl_seconds


class EphemeralStore(Protocol):
    """Common contract for ephemeral store backends."""

    async def get(self, key: str) -> Any | None:
        """Return the value for key, or None when absent or expired."""

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds."""

    async def delete(self, key: str) -> None:
        """Remove key if present."""

    async def pop(self, key: str) -> Any | None:
        """Atomically read and delete key."""

    async def mutate(self, key: str, mutator: Mutator[T]) -> T:
        """Atomically apply mutator to the current value of key."""

    async def ping(self) -> bool:
        """Return True when the backend answers."""

    async def clear(self) -> None:
        """Drop every key owned by this store (used in tests)."""

    async def close(self) -> None:
        """Release backend connections."""


@dataclass(slots=True)
class _Entry:
    raw: str
    expires_at: float


class InMemoryEphemeralStore:
    """Process-local store with lazy expiry, guarded by one asyncio lock."""

    def __init__(self, now_provider: Callable[[], float] | None = None) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        self._now = now_provider

    def _current_time(self) -> float:
        if self._now is not None:
            return self._now()
        return time.monotonic()

    def _live_entry(self, key: str, now: float) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._live_entry(key, self._current_time())
            raw = entry.raw if entry is not None else None
        return decode_value(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        _validate_ttl(ttl_seconds)
        raw = encode_value(value)
        async with self._lock:
            self._entries[key] = _Entry(raw=raw, expires_at=self._current_time() + ttl_seconds)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def pop(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._live_entry(key, self._current_time())
            if entry is None:
                return None
            del self._entries[key]
        return decode_value(entry.raw)

    async def mutate(self, key: str, mutator: Mutator[T]) -> T:
        async with self._lock:
            now = self._current_time()
            entry = self._live_entry(key, now)
            current = decode_value(entry.raw) if entry is not None else None
            write, result = mutator(current)
            if write is None:
                return result

            if write.ttl_seconds is not None:
                expires_at = now + _validate_ttl(write.ttl_seconds)
            elif entry is not None:
                expires_at = entry.expires_at
            else:
                raise ValueError("ttl_seconds is required when creating a key")
            self._entries[key] = _Entry(raw=encode_value(write.value), expires_at=expires_at)
            return result

    async def ping(self) -> bool:
        return True

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def close(self) -> None:
        await self.clear()


class RedisEphemeralStore:
    """Redis-backed store shared across app instances.

    Each call is bounded by ``timeout_seconds``; timeouts and connection
    errors surface as ``StoreUnavailableException`` so callers can tell an
    outage apart from a missing key.
    """

    def __init__(
        self,
        *,
        redis_url: str,
        namespace: str,
        timeout_seconds: float,
        max_cas_retries: int = 16,
        client: Any | None = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        self._redis_url = redis_url
        self._namespace = namespace
        self._timeout_seconds = timeout_seconds
        self._max_cas_retries = max_cas_retries
        self._init_lock = asyncio.Lock()
        self._client: Any | None = client

    def _build_storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def _ensure_initialized(self) -> Any:
        if self._client is not None:
            return self._client

        async with self._init_lock:
            if self._client is None:
                from redis.asyncio import from_url

                self._client = from_url(
                    self._redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_timeout=self._timeout_seconds,
                    socket_connect_timeout=self._timeout_seconds,
                )
        return self._client

    async def _run(self, operation: str, call: Callable[[Any], Awaitable[T]]) -> T:
        client = await self._ensure_initialized()
        try:
            return await asyncio.wait_for(call(client), timeout=self._timeout_seconds)
        except (TimeoutError, RedisError, OSError) as exc:
            STORE_ERRORS_TOTAL.labels(operation=operation).inc()
            logger.warning("Ephemeral store %s failed: %r", operation, exc)
            raise StoreUnavailableException(
                f"Ephemeral store is unavailable ({operation})",
            ) from exc

    async def get(self, key: str) -> Any | None:
        storage_key = self._build_storage_key(key)
        raw = await self._run("get", lambda client: client.get(storage_key))
        return decode_value(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        _validate_ttl(ttl_seconds)
        storage_key = self._build_storage_key(key)
        raw = encode_value(value)
        await self._run("set", lambda client: client.set(storage_key, raw, ex=ttl_seconds))

    async def delete(self, key: str) -> None:
        storage_key = self._build_storage_key(key)
        await self._run("delete", lambda client: client.delete(storage_key))

    async def pop(self, key: str) -> Any | None:
        storage_key = self._build_storage_key(key)
        # GETDEL is a single command, so two callers can never both see the value.
        raw = await self._run("pop", lambda client: client.getdel(storage_key))
        return decode_value(raw)

    async def mutate(self, key: str, mutator: Mutator[T]) -> T:
        storage_key = self._build_storage_key(key)

        async def _compare_and_swap(client: Any) -> T:
            async with client.pipeline(transaction=True) as pipe:
                for _ in range(self._max_cas_retries):
                    try:
                        await pipe.watch(storage_key)
                        current = decode_value(await pipe.get(storage_key))
                        write, result = mutator(current)
                        if write is None:
                            await pipe.reset()
                            return result

                        if write.ttl_seconds is None and current is None:
                            raise ValueError("ttl_seconds is required when creating a key")

                        raw = encode_value(write.value)
                        pipe.multi()
                        if write.ttl_seconds is None:
                            pipe.set(storage_key, raw, keepttl=True)
                        else:
                            pipe.set(storage_key, raw, ex=_validate_ttl(write.ttl_seconds))
                        await pipe.execute()
                        return result
                    except WatchError:
                        continue
            raise StoreUnavailableException(
                f"Ephemeral store contention on {key!r} exceeded {self._max_cas_retries} retries",
            )

        return await self._run("mutate", _compare_and_swap)

    async def ping(self) -> bool:
        try:
            return bool(await self._run("ping", lambda client: client.ping()))
        except StoreUnavailableException:
            return False

    async def clear(self) -> None:
        """Delete keys for this namespace."""
        pattern = f"{self._namespace}:*"

        async def _scan_and_delete(client: Any) -> None:
            cursor: int = 0
            while True:
                cursor, keys = await client.scan(cursor=cursor, match=pattern, count=100)
                if keys:
                    await client.delete(*keys)
                if int(cursor) == 0:
                    break

        await self._run("clear", _scan_and_delete)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_store(settings: Settings) -> EphemeralStore:
    """Create the configured store backend."""
    if settings.store_backend == "redis":
        return RedisEphemeralStore(
            redis_url=settings.redis_url or "",
            namespace=settings.store_namespace,
            timeout_seconds=settings.store_timeout_seconds,
            max_cas_retries=settings.store_cas_max_retries,
        )
    return InMemoryEphemeralStore()


def ttl_from_millis(window_ms: int) -> int:
    """Whole-second TTL covering a millisecond window."""
    return max(1, math.ceil(window_ms / 1000))
