"""
backend/matchdesk/services/response_cache.py

Purpose:
    TTL memoization for feed responses keyed by a request signature, with
    in-flight request coalescing and a retention sweep on every access.

Retention policy:
    Each lookup uses its own TTL for freshness, but any entry older than
    ``retention_seconds`` is dropped on the next access regardless of TTL.
    Nothing is swept proactively; an idle cache keeps its last entries.

Dependencies:
    - asyncio
    - time
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("matchdesk.response_cache")


@dataclass
class CacheEntry:
    key: str
    payload: Any
    timestamp: float


class ResponseCache:
    """Process-local response cache owned by one provider instance."""

    def __init__(
        self,
        retention_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Future] = {}
        self._retention = float(retention_seconds)
        self._clock = clock
        self._stats = {"hits": 0, "misses": 0, "coalesced": 0, "evicted": 0, "errors": 0}

    async def get_or_fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl: float,
    ) -> Any:
        while True:
            now = self._clock()
            self._sweep(now)

            entry = self._entries.get(key)
            if entry is not None and (now - entry.timestamp) < ttl:
                self._stats["hits"] += 1
                return entry.payload

            pending = self._inflight.get(key)
            if pending is None:
                return await self._fetch(key, producer)

            self._stats["coalesced"] += 1
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                # Only retry when the fetching caller went away, not this one.
                if not pending.cancelled() or asyncio.current_task().cancelling():
                    raise
                logger.debug("In-flight fetch for %s was cancelled, retrying", key)

    async def _fetch(self, key: str, producer: Callable[[], Awaitable[Any]]) -> Any:
        self._stats["misses"] += 1
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            payload = await producer()
        except asyncio.CancelledError:
            # Waiters see the cancelled future and take over the fetch.
            future.cancel()
            raise
        except Exception as exc:
            self._stats["errors"] += 1
            if not future.done():
                future.set_exception(exc)
            # Mark retrieved so an un-awaited future does not warn on GC.
            future.exception()
            raise
        else:
            self._entries[key] = CacheEntry(key=key, payload=payload, timestamp=self._clock())
            if not future.done():
                future.set_result(payload)
            return payload
        finally:
            self._inflight.pop(key, None)

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def stats(self) -> dict[str, int]:
        return {**self._stats, "entries": len(self._entries), "inflight": len(self._inflight)}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self._retention]
        for k in expired:
            del self._entries[k]
        if expired:
            self._stats["evicted"] += len(expired)
            logger.debug("Evicted %d cache entries past retention", len(expired))
