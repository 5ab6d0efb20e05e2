"""Tests for RunControllerRegistry: lazy creation, hydration, run isolation and eviction."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from runsheet.cues.clock import ScheduleClock
from runsheet.cues.models import CueStatus
from runsheet.cues.runs import RunControllerRegistry
from runsheet.infra.errors import InvalidTransitionError, PersistenceError
from runsheet.store.memory import InMemoryCueStore
from tests.conftest import make_input


@pytest.fixture
def runs(store: InMemoryCueStore, clock: ScheduleClock) -> RunControllerRegistry:
    return RunControllerRegistry(store, clock=clock, store_timeout_s=1.0)


class TestRunControllerRegistry:
    async def test_same_run_same_controller(self, runs: RunControllerRegistry) -> None:
        a = await runs.get("ws-1")
        b = await runs.get("ws-1")
        assert a is b
        assert runs.loaded_runs() == ["ws-1"]

    async def test_concurrent_first_access_creates_one(self, runs: RunControllerRegistry) -> None:
        controllers = await asyncio.gather(*(runs.get("ws-1") for _ in range(5)))
        assert len({id(c) for c in controllers}) == 1

    async def test_runs_are_isolated(self, runs: RunControllerRegistry) -> None:
        a = await runs.get("ws-1")
        b = await runs.get("ws-1:gala")
        cue = await a.create_cue(make_input())
        await a.start_cue(cue.id)

        assert b.list_cues() == []
        assert b.stats().total == 0
        assert a.stats().live == 1

    async def test_hydrates_from_store(self, store: InMemoryCueStore, clock: ScheduleClock) -> None:
        seeded = await store.create("ws-1", make_input())
        await store.update_status("ws-1", seeded.id, CueStatus.delayed)

        runs = RunControllerRegistry(store, clock=clock)
        controller = await runs.get("ws-1")

        assert controller.get_cue(seeded.id).status == CueStatus.delayed

    async def test_failed_hydration_not_cached(self, store: InMemoryCueStore, clock: ScheduleClock) -> None:
        runs = RunControllerRegistry(store, clock=clock)
        original_list = store.list
        store.list = AsyncMock(side_effect=ConnectionError("db down"))

        with pytest.raises(PersistenceError):
            await runs.get("ws-1")
        assert runs.loaded_runs() == []

        store.list = original_list
        controller = await runs.get("ws-1")
        assert controller.run_id == "ws-1"

    async def test_settings_propagate(self, store: InMemoryCueStore, clock: ScheduleClock) -> None:
        runs = RunControllerRegistry(store, clock=clock, single_live=True)
        controller = await runs.get("ws-1")
        a = await controller.create_cue(make_input("A"))
        b = await controller.create_cue(make_input("B"))
        await controller.start_cue(a.id)

        with pytest.raises(InvalidTransitionError, match="already live"):
            await controller.start_cue(b.id)


class TestEviction:
    async def test_least_recently_used_idle_run_is_dropped(
        self, store: InMemoryCueStore, clock: ScheduleClock
    ) -> None:
        runs = RunControllerRegistry(store, clock=clock, max_runs=2)
        await runs.get("ws-1")
        await runs.get("ws-2")
        await runs.get("ws-1")
        assert runs.loaded_runs() == ["ws-2", "ws-1"]

        await runs.get("ws-3")
        assert runs.loaded_runs() == ["ws-1", "ws-3"]

    async def test_busy_run_is_kept(self, store: InMemoryCueStore, clock: ScheduleClock) -> None:
        runs = RunControllerRegistry(store, clock=clock, max_runs=1)
        busy = await runs.get("ws-1")

        async with busy._run_lock:
            await runs.get("ws-2")
            assert runs.loaded_runs() == ["ws-1", "ws-2"]

        await runs.get("ws-3")
        assert runs.loaded_runs() == ["ws-3"]

    async def test_dropped_run_reloads_from_store(
        self, store: InMemoryCueStore, clock: ScheduleClock
    ) -> None:
        runs = RunControllerRegistry(store, clock=clock, max_runs=1)
        first = await runs.get("ws-1")
        cue = await first.create_cue(make_input())
        await first.start_cue(cue.id)

        await runs.get("ws-2")
        reloaded = await runs.get("ws-1")

        assert reloaded is not first
        assert reloaded.get_cue(cue.id).status == CueStatus.live

    def test_max_runs_must_be_positive(self, store: InMemoryCueStore) -> None:
        with pytest.raises(ValueError, match="max_runs"):
            RunControllerRegistry(store, max_runs=0)
