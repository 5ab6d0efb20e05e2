"""RunController: the single entry point for commands against one run-of-show.

Flow for every state-changing command:
    validate (state machine / input) -> store write -> registry update -> return cue

[Write-through] The store is awaited before the registry changes. A store
failure or timeout raises PersistenceError and the in-memory cue keeps its
previous status, so a failed command never partially applies.

Locking: one asyncio.Lock per cue linearizes commands on the same cue;
commands on different cues run independently. Membership changes (create,
delete, reset, seed) hold the run lock, and reset additionally holds every
cue lock. Lock order is always run lock first, then cue locks by id.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from contextlib import AsyncExitStack, nullcontext
from typing import TYPE_CHECKING, TypeVar

import structlog

from runsheet.cues import state_machine
from runsheet.cues.clock import ScheduleClock
from runsheet.cues.models import Cue, CueCommand, CueInput, CueView, validate_cue_fields
from runsheet.cues.registry import CueRegistry
from runsheet.cues.stats import StatsSnapshot, compute_stats
from runsheet.infra.errors import PersistenceError, RunsheetError

if TYPE_CHECKING:
    from runsheet.store.base import CueStore
    from runsheet.store.directory import TeamDirectory

logger = structlog.get_logger()

T = TypeVar("T")


class RunController:
    """Commands and views for the cues of one run."""

    def __init__(
        self,
        run_id: str,
        store: CueStore,
        *,
        directory: TeamDirectory | None = None,
        clock: ScheduleClock | None = None,
        store_timeout_s: float = 5.0,
        single_live: bool = False,
    ) -> None:
        self.run_id = run_id
        self._store = store
        self._directory = directory
        self._clock = clock or ScheduleClock()
        self._store_timeout_s = store_timeout_s
        self._single_live = single_live
        self._registry = CueRegistry(run_id)
        self._run_lock = asyncio.Lock()
        self._cue_locks: dict[str, asyncio.Lock] = {}

    async def hydrate(self) -> None:
        """Load the run's cues from the store, replacing the in-memory view."""
        async with self._run_lock:
            cues = await self._persist(self._store.list(self.run_id), op="list")
            self._registry.load(cues)
            self._cue_locks.clear()
        logger.info("run_hydrated", run_id=self.run_id, cue_count=len(cues))

    # -- commands ---------------------------------------------------------

    async def create_cue(self, cue_input: CueInput) -> Cue:
        """Persist and register a new upcoming cue."""
        async with self._run_lock:
            return await self._create(cue_input)

    async def delete_cue(self, cue_id: str) -> None:
        async with self._run_lock:
            self._registry.get(cue_id)
            async with self._cue_lock(cue_id):
                await self._persist(
                    self._store.delete(self.run_id, cue_id), op="delete", cue_id=cue_id
                )
                self._registry.remove(cue_id)
            self._cue_locks.pop(cue_id, None)
        logger.info("cue_deleted", run_id=self.run_id, cue_id=cue_id)

    async def start_cue(self, cue_id: str) -> Cue:
        """Start an upcoming cue, or resume a delayed one."""
        return await self._transition(cue_id, CueCommand.start)

    async def complete_cue(self, cue_id: str) -> Cue:
        return await self._transition(cue_id, CueCommand.complete)

    async def skip_cue(self, cue_id: str) -> Cue:
        return await self._transition(cue_id, CueCommand.skip)

    async def delay_cue(self, cue_id: str) -> Cue:
        return await self._transition(cue_id, CueCommand.delay)

    async def reset_all(self) -> list[Cue]:
        """Administrative override: every cue goes back to upcoming.

        Bypasses the transition table on purpose, including for terminal cues.
        Returns the reset run in schedule order.
        """
        async with self._run_lock, AsyncExitStack() as stack:
            for cue_id in sorted(c.id for c in self._registry.list()):
                await stack.enter_async_context(self._cue_lock(cue_id))
            await self._persist(self._store.reset_all(self.run_id), op="reset_all")
            self._registry.reset_all()
        logger.warning("run_reset", run_id=self.run_id, cue_count=len(self._registry))
        return self._registry.list()

    async def seed(self, inputs: Iterable[CueInput]) -> list[Cue]:
        """Create cues in bulk, only into an empty run. All or nothing.

        Raises RunsheetError(code="RUNSHEET_NOT_EMPTY") if the run has cues.
        If any create fails, the cues created so far are deleted again and
        the original error is re-raised.
        """
        inputs = list(inputs)
        for cue_input in inputs:
            validate_cue_fields(cue_input.title, cue_input.duration_minutes)
        async with self._run_lock:
            if len(self._registry):
                raise RunsheetError(
                    f"Run {self.run_id} already has {len(self._registry)} cues",
                    code="RUNSHEET_NOT_EMPTY",
                )
            created: list[Cue] = []
            try:
                for cue_input in inputs:
                    created.append(await self._create(cue_input))
            except RunsheetError:
                await self._rollback_seed(created)
                raise
        logger.info("run_seeded", run_id=self.run_id, cue_count=len(created))
        return created

    # -- reads ------------------------------------------------------------

    def is_idle(self) -> bool:
        """True when no command holds the run lock or any cue lock."""
        return not self._run_lock.locked() and not any(
            lock.locked() for lock in self._cue_locks.values()
        )

    def get_cue(self, cue_id: str) -> Cue:
        return self._registry.get(cue_id)

    def list_cues(self) -> list[Cue]:
        return self._registry.list()

    def stats(self) -> StatsSnapshot:
        return compute_stats(self._registry.list())

    async def list_views(self) -> list[CueView]:
        """Cues in schedule order with technician names and due state.

        Directory failures degrade to missing names; they never fail the read.
        """
        cues = self._registry.list()
        names: dict[str, str] = {}
        technician_ids = [c.technician_id for c in cues if c.technician_id]
        if self._directory is not None and technician_ids:
            try:
                names = await self._directory.names_of(technician_ids)
            except Exception:
                logger.warning(
                    "directory_lookup_failed", run_id=self.run_id, exc_info=True
                )
        due = self._clock.due_infos(cues)
        return [
            CueView(
                cue=cue,
                technician_name=names.get(cue.technician_id) if cue.technician_id else None,
                due_state=due[cue.id].state.value,
                overdue_by_minutes=due[cue.id].overdue_by_minutes,
            )
            for cue in cues
        ]

    # -- internals --------------------------------------------------------

    async def _create(self, cue_input: CueInput) -> Cue:
        # Checked before the store so that an invalid input never persists.
        validate_cue_fields(cue_input.title, cue_input.duration_minutes)
        stored = await self._persist(self._store.create(self.run_id, cue_input), op="create")
        cue = self._registry.add(stored)
        logger.info(
            "cue_created",
            run_id=self.run_id,
            cue_id=cue.id,
            scheduled_time=cue.scheduled_time.strftime("%H:%M"),
            cue_type=cue.cue_type.value,
        )
        return cue

    async def _transition(self, cue_id: str, command: CueCommand) -> Cue:
        self._registry.get(cue_id)
        # Entering live must see a stable set of live cues when single_live is on.
        guard = (
            self._run_lock
            if self._single_live and command == CueCommand.start
            else nullcontext()
        )
        async with guard, self._cue_lock(cue_id):
            current = self._registry.get(cue_id)
            try:
                proposed = state_machine.apply(
                    current,
                    command,
                    others=self._registry.list(),
                    single_live=self._single_live,
                )
            except RunsheetError as e:
                logger.warning(
                    "cue_transition_rejected",
                    run_id=self.run_id,
                    cue_id=cue_id,
                    command=command.value,
                    status=current.status.value,
                    error=str(e),
                )
                raise
            stored = await self._persist(
                self._store.update_status(self.run_id, cue_id, proposed.status),
                op=command.value,
                cue_id=cue_id,
            )
            updated = self._registry.replace(stored)
        logger.info(
            "cue_transitioned",
            run_id=self.run_id,
            cue_id=cue_id,
            command=command.value,
            from_status=current.status.value,
            to_status=updated.status.value,
        )
        return updated

    async def _rollback_seed(self, created: list[Cue]) -> None:
        """Delete cues from a failed seed. Caller holds the run lock.

        A cue whose delete also fails stays in both store and registry, so the
        two never disagree; the operator can delete it by hand.
        """
        for cue in reversed(created):
            try:
                await self._persist(
                    self._store.delete(self.run_id, cue.id), op="delete", cue_id=cue.id
                )
            except RunsheetError:
                logger.error("seed_rollback_failed", run_id=self.run_id, cue_id=cue.id)
                continue
            self._registry.remove(cue.id)
        logger.warning(
            "run_seed_rolled_back",
            run_id=self.run_id,
            attempted=len(created),
            remaining=len(self._registry),
        )

    def _cue_lock(self, cue_id: str) -> asyncio.Lock:
        lock = self._cue_locks.get(cue_id)
        if lock is None:
            lock = self._cue_locks[cue_id] = asyncio.Lock()
        return lock

    async def _persist(
        self, call: Awaitable[T], *, op: str, cue_id: str | None = None
    ) -> T:
        """Await a store call with the configured timeout.

        RunsheetErrors from the store (e.g. CueNotFoundError) pass through;
        anything else becomes PersistenceError.
        """
        try:
            return await asyncio.wait_for(call, timeout=self._store_timeout_s)
        except RunsheetError:
            raise
        except TimeoutError as e:
            logger.error(
                "cue_store_timeout",
                run_id=self.run_id,
                cue_id=cue_id,
                op=op,
                timeout_s=self._store_timeout_s,
            )
            raise PersistenceError(
                f"Cue store timed out after {self._store_timeout_s}s during {op}"
            ) from e
        except Exception as e:
            logger.exception("cue_store_failed", run_id=self.run_id, cue_id=cue_id, op=op)
            raise PersistenceError(f"Cue store failed during {op}: {e}") from e
