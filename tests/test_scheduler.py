"""Tests for RefreshScheduler."""

import asyncio
import bz2
import logging

import pytest

from conftest import FakeFeed
from phishdb.errors import DecodeError, FetchError
from phishdb.scheduler import RefreshOutcome, RefreshScheduler
from phishdb.state import DatasetState


@pytest.fixture
def state():
    return DatasetState()


@pytest.fixture
def scheduler(feed, state, decoder):
    return RefreshScheduler(feed, state, decoder=decoder, interval=3600)


class TestRefresh:
    async def test_forced_refresh_ignores_token(self, scheduler, feed, state, decoder):
        """The startup load never sends a change token."""
        state.change_token = '"v1"'

        outcome = await scheduler.refresh(force=True)

        assert outcome is RefreshOutcome.UPDATED
        assert feed.calls == [None]
        assert decoder.calls == 1
        assert len(state.current) == 2

    async def test_installs_set_and_token(self, scheduler, state):
        await scheduler.refresh(force=True)

        assert state.change_token == '"v1"'
        assert "http://evil.example/b" in state.current
        assert state.last_updated is not None

    async def test_unchanged_skips_decode(self, scheduler, feed, state, decoder):
        """Same ETag on the second cycle: no decode, same set, same count."""
        await scheduler.refresh(force=True)
        before = state.current
        updated_at = state.last_updated

        outcome = await scheduler.refresh()

        assert outcome is RefreshOutcome.UNCHANGED
        assert feed.calls == [None, '"v1"']
        assert decoder.calls == 1
        assert state.current is before
        assert len(state.current) == 2
        assert state.last_updated == updated_at

    async def test_new_version_replaces_set(self, scheduler, feed, state):
        """A new feed version replaces the whole set."""
        await scheduler.refresh(force=True)
        feed.publish(["http://other.example"], '"v2"')

        outcome = await scheduler.refresh()

        assert outcome is RefreshOutcome.UPDATED
        assert state.change_token == '"v2"'
        assert "http://other.example" in state.current
        assert "http://evil.example/a" not in state.current

    async def test_feed_without_probe_support_always_decodes(self, state, decoder):
        """If the probe never confirms the token, every cycle is a full fetch."""
        feed = FakeFeed(["http://a.example"], honor_probe=False)
        scheduler = RefreshScheduler(feed, state, decoder=decoder)

        await scheduler.refresh(force=True)
        await scheduler.refresh()
        await scheduler.refresh()

        assert decoder.calls == 3
        assert len(state.current) == 1

    async def test_errors_propagate(self, scheduler, feed, unreachable):
        feed.error = unreachable
        with pytest.raises(FetchError):
            await scheduler.refresh(force=True)


class TestTick:
    async def test_fetch_error_keeps_old_data(self, scheduler, feed, state, unreachable, caplog):
        """A failed cycle logs an error and leaves the dataset alone."""
        await scheduler.refresh(force=True)
        before = state.current
        feed.error = unreachable

        with caplog.at_level(logging.ERROR, logger="phishdb"):
            outcome = await scheduler.tick()

        assert outcome is None
        assert state.current is before
        assert state.change_token == '"v1"'
        assert "Error refreshing database" in caplog.text
        assert "ConnectError" in caplog.text

    async def test_decode_error_keeps_old_data(self, scheduler, feed, state, caplog):
        """A corrupt new version leaves the old set fully queryable."""
        await scheduler.refresh(force=True)
        before = state.current
        feed.body = bz2.compress(b'[{"url": "http://new.example"}, {"nope": 1}]')
        feed.etag = '"v2"'

        with caplog.at_level(logging.ERROR, logger="phishdb"):
            outcome = await scheduler.tick()

        assert outcome is None
        assert state.current is before
        assert state.change_token == '"v1"'
        assert "http://evil.example/a" in state.current
        assert "http://new.example" not in state.current
        assert "parse" in caplog.text

    async def test_success_is_logged(self, scheduler, caplog):
        with caplog.at_level(logging.INFO, logger="phishdb"):
            outcome = await scheduler.tick()

        assert outcome is RefreshOutcome.UPDATED
        assert "Refreshed database: 2 entries" in caplog.text


class TestBackgroundTask:
    async def test_runs_on_interval(self, feed, state, decoder):
        """The background task refreshes once per interval."""
        scheduler = RefreshScheduler(feed, state, decoder=decoder, interval=0.05)
        scheduler.start()
        try:
            assert scheduler.running
            await asyncio.sleep(0.18)
        finally:
            await scheduler.stop()

        assert not scheduler.running
        assert 2 <= len(feed.calls) <= 4
        # First periodic cycle has no token yet, later ones are conditional.
        assert feed.calls[0] is None
        assert all(call == '"v1"' for call in feed.calls[1:])
        assert decoder.calls == 1

    async def test_keeps_running_after_failures(self, feed, state, unreachable):
        """A failing feed does not stop the schedule."""
        feed.error = unreachable
        scheduler = RefreshScheduler(feed, state, interval=0.03)
        scheduler.start()
        try:
            await asyncio.sleep(0.12)
            assert scheduler.running
        finally:
            await scheduler.stop()

        assert len(feed.calls) >= 2

    async def test_unexpected_error_does_not_stop_schedule(self, feed, state, decoder, caplog):
        """An error outside the feed errors is logged and the next tick still runs."""
        feed.error = RuntimeError("client closed")
        scheduler = RefreshScheduler(feed, state, decoder=decoder, interval=0.02)

        with caplog.at_level(logging.ERROR, logger="phishdb"):
            scheduler.start()
            try:
                await asyncio.sleep(0.05)
                assert scheduler.running
                feed.error = None
                await asyncio.sleep(0.06)
                assert scheduler.running
            finally:
                await scheduler.stop()

        assert "Unexpected error refreshing database" in caplog.text
        assert "client closed" in caplog.text
        assert len(feed.calls) >= 3
        assert decoder.calls == 1
        assert "http://evil.example/a" in state.current

    async def test_start_twice_keeps_one_task(self, scheduler):
        scheduler.start()
        task = scheduler._task
        scheduler.start()
        assert scheduler._task is task
        await scheduler.stop()
        await scheduler.stop()

    def test_rejects_non_positive_interval(self, feed, state):
        with pytest.raises(ValueError):
            RefreshScheduler(feed, state, interval=0)
