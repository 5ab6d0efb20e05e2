"""RunControllerRegistry: one RunController per run key.

Controllers are created lazily on first use and hydrated from the store.
Runs share no mutable state beyond the store itself. At most max_runs
controllers stay loaded; the least recently used idle ones are dropped and
re-hydrated from the store on their next use.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import TYPE_CHECKING

import structlog

from runsheet.cues.clock import ScheduleClock
from runsheet.cues.controller import RunController

if TYPE_CHECKING:
    from runsheet.store.base import CueStore
    from runsheet.store.directory import TeamDirectory

logger = structlog.get_logger()

DEFAULT_MAX_RUNS = 256


class RunControllerRegistry:
    def __init__(
        self,
        store: CueStore,
        *,
        directory: TeamDirectory | None = None,
        clock: ScheduleClock | None = None,
        store_timeout_s: float = 5.0,
        single_live: bool = False,
        max_runs: int = DEFAULT_MAX_RUNS,
    ) -> None:
        if max_runs < 1:
            raise ValueError(f"max_runs must be at least 1 (got {max_runs})")
        self._store = store
        self._directory = directory
        self._clock = clock or ScheduleClock()
        self._store_timeout_s = store_timeout_s
        self._single_live = single_live
        self._max_runs = max_runs
        self._controllers: OrderedDict[str, RunController] = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, run_id: str) -> RunController:
        """Return the controller for run_id, hydrating it on first access.

        A failed hydration is not cached; the next call retries the load.
        """
        controller = self._controllers.get(run_id)
        if controller is not None:
            self._controllers.move_to_end(run_id)
            return controller
        async with self._lock:
            controller = self._controllers.get(run_id)
            if controller is None:
                controller = RunController(
                    run_id,
                    self._store,
                    directory=self._directory,
                    clock=self._clock,
                    store_timeout_s=self._store_timeout_s,
                    single_live=self._single_live,
                )
                await controller.hydrate()
                self._controllers[run_id] = controller
                logger.info("run_controller_created", run_id=run_id)
                self._evict()
            else:
                self._controllers.move_to_end(run_id)
        return controller

    def loaded_runs(self) -> list[str]:
        """Loaded run ids, least recently used first."""
        return list(self._controllers.keys())

    def _evict(self) -> None:
        # Controllers with a command in flight are skipped, and so is the newest
        # entry (the one being returned); the registry may sit over the bound.
        for run_id in list(self._controllers)[:-1]:
            if len(self._controllers) <= self._max_runs:
                return
            if self._controllers[run_id].is_idle():
                del self._controllers[run_id]
                logger.debug("run_controller_evicted", run_id=run_id)
