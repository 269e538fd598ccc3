"""
Tests for QuoteStore validity windows, sweeping and tombstones.
"""

import asyncio

import pytest

from quoteflow.core.errors import ErrorStep, QuoteExpiredError, QuoteNotFoundError, StructuredError
from quoteflow.core.quote_store import QuoteStore

from tests.fakes import FakeClock, make_quote


class TestValidityWindow:
    def test_quote_is_consumable_before_expiry(self, quote_store, clock):
        quote = make_quote()
        quote_store.store(quote)

        clock.advance(599.999)

        assert quote_store.get(quote.quote_id) is quote

    def test_quote_expires_on_the_exact_tick(self, quote_store, clock):
        quote = make_quote()
        entry = quote_store.store(quote)

        clock.now = entry.expires_at

        with pytest.raises(QuoteExpiredError) as exc:
            quote_store.get(quote.quote_id)
        assert exc.value.step == ErrorStep.EXECUTION
        assert exc.value.details["reason"] == "quote_expired"

    def test_eleven_minutes_later_the_quote_is_gone(self, quote_store, clock):
        quote = make_quote()
        quote_store.store(quote)

        clock.advance(11 * 60)

        with pytest.raises(QuoteExpiredError):
            quote_store.get(quote.quote_id)
        assert quote.quote_id not in quote_store

    def test_consuming_does_not_remove(self, quote_store):
        quote = make_quote()
        quote_store.store(quote)

        assert quote_store.get(quote.quote_id) is quote
        assert quote_store.get(quote.quote_id) is quote
        assert len(quote_store) == 1

    def test_per_call_ttl_overrides_default(self, quote_store, clock):
        quote = make_quote()
        quote_store.store(quote, ttl=30)

        clock.advance(31)

        with pytest.raises(QuoteExpiredError):
            quote_store.get(quote.quote_id)

    def test_unknown_id_is_not_found(self, quote_store):
        with pytest.raises(QuoteNotFoundError) as exc:
            quote_store.get("deadbeef")
        assert exc.value.step == ErrorStep.EXECUTION
        assert exc.value.details["reason"] == "quote_not_found"

    def test_duplicate_id_is_rejected(self, quote_store):
        quote = make_quote(quote_id="ab" * 32)
        quote_store.store(quote)

        with pytest.raises(StructuredError) as exc:
            quote_store.store(make_quote(quote_id="ab" * 32))
        assert exc.value.step == ErrorStep.PROVIDER_VALIDATION
        assert quote_store.get(quote.quote_id) is quote


class TestSweep:
    def test_sweep_evicts_only_expired(self, quote_store, clock):
        old = make_quote()
        quote_store.store(old)
        clock.advance(300)
        fresh = make_quote()
        quote_store.store(fresh)

        clock.advance(300)
        removed = quote_store.sweep()

        assert removed == 1
        assert old.quote_id not in quote_store
        assert fresh.quote_id in quote_store

    def test_late_lookup_after_sweep_reports_expired(self, quote_store, clock):
        quote = make_quote()
        quote_store.store(quote)
        clock.advance(601)
        quote_store.sweep()

        with pytest.raises(QuoteExpiredError):
            quote_store.get(quote.quote_id)

    def test_tombstones_are_bounded(self, clock):
        store = QuoteStore(10, clock=clock, sweep_interval_seconds=30, tombstone_size=2)
        quotes = [make_quote() for _ in range(3)]
        for quote in quotes:
            store.store(quote)
            clock.advance(1)

        clock.advance(10)
        assert store.sweep() == 3

        with pytest.raises(QuoteNotFoundError):
            store.get(quotes[0].quote_id)
        with pytest.raises(QuoteExpiredError):
            store.get(quotes[2].quote_id)

    def test_evicted_quote_is_skipped_by_sweep(self, quote_store, clock):
        quote = make_quote()
        quote_store.store(quote)
        assert quote_store.evict(quote.quote_id) is True

        clock.advance(601)

        assert quote_store.sweep() == 0
        assert quote_store.evict(quote.quote_id) is False


class TestSweeperTask:
    @pytest.mark.asyncio
    async def test_background_sweep_runs_and_stops(self):
        clock = FakeClock()
        store = QuoteStore(5, clock=clock, sweep_interval_seconds=0.01, tombstone_size=8)
        quote = make_quote()
        store.store(quote)

        store.start()
        assert store.running

        clock.advance(10)
        await asyncio.sleep(0.05)

        assert len(store) == 0
        await store.close()
        assert not store.running

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, quote_store):
        quote_store.start()
        task = quote_store._sweeper
        quote_store.start()

        assert quote_store._sweeper is task
        await quote_store.close()
