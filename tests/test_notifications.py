"""
tests/test_notifications.py — Notification Hub & Duel Sweeper Tests
====================================================================
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

from conftest import T0
from repforge.engine.events import ArchetypeChangeEvent, LevelUpEvent
from repforge.services.duel_sweeper import DuelSweeper
from repforge.services.notifications import NotificationHub

LEVEL_UP = LevelUpEvent(1, 1, 2, "Awkward Initiate", "Awkward Initiate")


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestNotificationHub:
    def test_routes_by_event_type(self):
        hub = NotificationHub()
        levels, archetypes = [], []
        hub.register_callback("level_up", levels.append)
        hub.register_callback("archetype_change", archetypes.append)

        assert hub.publish(LEVEL_UP) == 1
        assert levels == [LEVEL_UP]
        assert archetypes == []

    def test_wildcard_receives_everything(self):
        hub = NotificationHub()
        seen = []
        hub.register_callback("*", seen.append)
        change = ArchetypeChangeEvent(1, "Warrior", "Templar", 10, 10)
        hub.publish_all([LEVEL_UP, change])
        assert [e.event_type for e in seen] == ["level_up", "archetype_change"]

    def test_no_listener_is_fine(self):
        assert NotificationHub().publish(LEVEL_UP) == 0

    def test_failing_listener_is_isolated(self, caplog):
        hub = NotificationHub()
        seen = []

        def broken(event):
            raise RuntimeError("announcer down")

        hub.register_callback("level_up", broken)
        hub.register_callback("level_up", seen.append)
        assert hub.publish(LEVEL_UP) == 2
        assert seen == [LEVEL_UP]
        assert "Notification listener failed" in caplog.text

    def test_clear(self):
        hub = NotificationHub()
        hub.register_callback("*", lambda e: None)
        hub.clear()
        assert hub.publish(LEVEL_UP) == 0

    def test_coroutine_listener_scheduled_on_bound_loop(self):
        received = []

        async def announce(event):
            received.append(event)

        async def _inner():
            hub = NotificationHub()
            hub.bind_loop(asyncio.get_running_loop())
            hub.register_callback("level_up", announce)
            # Published from a worker thread, as run_db does.
            await asyncio.to_thread(hub.publish, LEVEL_UP)
            await asyncio.sleep(0.05)

        run_async(_inner())
        assert received == [LEVEL_UP]

    def test_coroutine_listener_without_loop_is_skipped(self, caplog):
        async def announce(event):
            raise AssertionError("should not run")

        hub = NotificationHub()
        hub.register_callback("level_up", announce)
        assert hub.publish(LEVEL_UP) == 1
        assert "no event loop" in caplog.text

    def test_event_payload(self):
        assert LEVEL_UP.to_dict() == {
            "event_type": "level_up",
            "user_id": 1,
            "old_level": 1,
            "new_level": 2,
            "old_class": "Awkward Initiate",
            "new_class": "Awkward Initiate",
            "source": "stats_submission",
        }


class TestDuelSweeper:
    def test_sweep_once_runs_arbiter_sweep(self, arbiter):
        stale = arbiter.challenge(1, 2, now=T0 - timedelta(hours=2))
        result = run_async(DuelSweeper(arbiter).sweep_once())
        assert result.expired == [stale.id]

    def test_start_and_stop(self, arbiter):
        async def _inner():
            sweeper = DuelSweeper(arbiter, interval=3600)
            sweeper.start()
            assert sweeper.running
            await asyncio.sleep(0.05)
            sweeper.stop()
            await asyncio.sleep(0)
            assert not sweeper.running

        run_async(_inner())
