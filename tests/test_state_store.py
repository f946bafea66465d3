"""Tests for the in-process conversation state store."""

import logging

import pytest
from cachetools import TTLCache

from swiftship.config import QuoteStep
from swiftship.quoting.domain import ConversationState
from swiftship.quoting.infrastructure import ConversationStateStore, ConversationSweepScheduler


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestConversationStateStore:
    """LRU eviction, idle expiry and copy semantics."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self, clock):
        return ConversationStateStore(max_entries=2, ttl_seconds=60, clock=clock)

    def test_get_missing(self, store):
        assert store.get("conv-1") is None

    def test_least_recently_used_is_evicted(self, store):
        store.save("a", ConversationState())
        store.save("b", ConversationState())
        store.get("a")
        store.save("c", ConversationState())

        assert store.get("a") is not None
        assert store.get("b") is None
        assert store.get("c") is not None
        assert len(store) == 2

    def test_idle_entries_expire(self, store, clock):
        store.save("a", ConversationState(step=QuoteStep.ADDRESSES))
        clock.now += 59
        assert store.get("a").step == QuoteStep.ADDRESSES

        clock.now += 61
        assert store.get("a") is None
        assert len(store) == 0

    def test_purge_expired(self, store, clock):
        store.save("a", ConversationState())
        clock.now += 30
        store.save("b", ConversationState())
        clock.now += 40

        assert store.purge_expired() == 1
        assert store.get("b") is not None

    def test_returns_copies(self, store):
        state = ConversationState(step=QuoteStep.PACKAGE_DETAILS)
        store.save("a", state)
        state.step = QuoteStep.CONFIRMATION

        loaded = store.get("a")
        assert loaded.step == QuoteStep.PACKAGE_DETAILS

        loaded.step = QuoteStep.ADDRESSES
        assert store.get("a").step == QuoteStep.PACKAGE_DETAILS

    def test_capacity_eviction_is_logged(self, store, caplog):
        assert isinstance(store._cache, TTLCache)
        store.save("a", ConversationState())
        store.save("b", ConversationState())

        with caplog.at_level(logging.DEBUG, logger="swiftship.quoting.infrastructure.state_store"):
            store.save("c", ConversationState())

        assert caplog.records[-1].conversation_key == "a"
        assert store.purge_expired() == 0

    def test_delete(self, store):
        store.save("a", ConversationState())
        store.delete("a")
        store.delete("never-saved")
        assert store.get("a") is None


class TestConversationSweepScheduler:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        store = ConversationStateStore(max_entries=10, ttl_seconds=60)
        scheduler = ConversationSweepScheduler(interval_seconds=300)

        async def sweep_job():
            store.purge_expired()

        await scheduler.start(sweep_job)
        assert scheduler.is_running
        job = scheduler._scheduler.get_job("conversation_sweep")
        assert job.trigger.interval.total_seconds() == 300

        # Second start is ignored
        await scheduler.start(sweep_job)

        await scheduler.stop()
        assert not scheduler.is_running
        await scheduler.stop()
