"""
In-memory quote store with bounded validity.

Expiry is enforced two ways:
- passively: ``get`` compares the injected clock against ``expires_at`` on every lookup
- actively: a single background sweep pops expired ids off a min-heap keyed by expiry

Swept ids are remembered in a bounded tombstone map so that a late lookup still reports
the quote as expired instead of unknown. Nothing here is locked; every mutation happens
synchronously between awaits on the single event loop.
"""

from __future__ import annotations

import asyncio
import heapq
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..config import settings
from .errors import ErrorStep, QuoteExpiredError, QuoteNotFoundError, StructuredError
from .models import Quote


logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class StoredQuote:
    quote: Quote
    stored_at: float
    expires_at: float


class QuoteStore:
    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        *,
        clock: Clock = time.monotonic,
        sweep_interval_seconds: Optional[float] = None,
        tombstone_size: Optional[int] = None,
    ):
        self.ttl_seconds = float(ttl_seconds if ttl_seconds is not None else settings.quote_ttl_seconds)
        self.sweep_interval_seconds = (
            sweep_interval_seconds
            if sweep_interval_seconds is not None
            else settings.quote_sweep_interval_seconds
        )
        self.tombstone_size = tombstone_size if tombstone_size is not None else settings.quote_tombstone_size
        self._clock = clock

        self._entries: Dict[str, StoredQuote] = {}
        self._heap: List[Tuple[float, str]] = []
        self._tombstones: "OrderedDict[str, float]" = OrderedDict()
        self._sweeper: Optional[asyncio.Task] = None

    def now(self) -> float:
        return self._clock()

    def store(self, quote: Quote, ttl: Optional[float] = None) -> StoredQuote:
        """Store a quote; its validity window starts now."""
        if quote.quote_id in self._entries:
            raise StructuredError(
                ErrorStep.PROVIDER_VALIDATION,
                "Duplicate quote id",
                {"quoteId": quote.quote_id, "provider": quote.provider},
            )

        now = self.now()
        expires_at = now + (ttl if ttl is not None else self.ttl_seconds)
        entry = StoredQuote(quote=quote, stored_at=now, expires_at=expires_at)
        self._entries[quote.quote_id] = entry
        heapq.heappush(self._heap, (expires_at, quote.quote_id))
        return entry

    def get(self, quote_id: str) -> Quote:
        """Return a consumable quote. Consuming does not remove it."""
        entry = self._entries.get(quote_id)
        now = self.now()

        if entry is None:
            expired_at = self._tombstones.get(quote_id)
            if expired_at is not None:
                raise QuoteExpiredError(quote_id, expired_at, now)
            raise QuoteNotFoundError(quote_id)

        if now >= entry.expires_at:
            self._expire(quote_id, entry.expires_at)
            raise QuoteExpiredError(quote_id, entry.expires_at, now)

        return entry.quote

    def evict(self, quote_id: str) -> bool:
        """Drop a quote immediately. Stale heap entries are skipped by the sweep."""
        return self._entries.pop(quote_id, None) is not None

    def _expire(self, quote_id: str, expires_at: float) -> None:
        self._entries.pop(quote_id, None)
        if self.tombstone_size <= 0:
            return
        self._tombstones[quote_id] = expires_at
        self._tombstones.move_to_end(quote_id)
        while len(self._tombstones) > self.tombstone_size:
            self._tombstones.popitem(last=False)

    def sweep(self) -> int:
        """Evict every entry whose expiry has passed; returns how many were removed."""
        now = self.now()
        removed = 0
        while self._heap and self._heap[0][0] <= now:
            expires_at, quote_id = heapq.heappop(self._heap)
            entry = self._entries.get(quote_id)
            if entry is None or entry.expires_at != expires_at:
                continue
            self._expire(quote_id, expires_at)
            removed += 1

        if removed:
            logger.debug(f"Swept {removed} expired quotes ({len(self._entries)} remaining)")
        return removed

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()

    def start(self) -> None:
        """Start the periodic sweep on the running loop; no-op if already running."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def close(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, quote_id: object) -> bool:
        return quote_id in self._entries
