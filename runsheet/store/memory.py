"""Process-local CueStore, used for RUNSHEET_STORE_BACKEND=memory and tests."""

from __future__ import annotations

import uuid
from dataclasses import replace

from runsheet.cues.models import Cue, CueInput, CueStatus
from runsheet.infra.errors import CueNotFoundError
from runsheet.store.base import CueStore


class InMemoryCueStore(CueStore):
    def __init__(self) -> None:
        # dicts keep insertion order, which doubles as creation order
        self._runs: dict[str, dict[str, Cue]] = {}

    async def create(self, run_id: str, cue_input: CueInput) -> Cue:
        cue = Cue(
            id=str(uuid.uuid4()),
            run_id=run_id,
            scheduled_time=cue_input.scheduled_time,
            duration_minutes=cue_input.duration_minutes,
            title=cue_input.title,
            cue_type=cue_input.cue_type,
            description=cue_input.description,
            technician_id=cue_input.technician_id,
            notes=cue_input.notes,
        )
        self._runs.setdefault(run_id, {})[cue.id] = cue
        return cue

    async def delete(self, run_id: str, cue_id: str) -> None:
        run = self._runs.get(run_id, {})
        if cue_id not in run:
            raise CueNotFoundError(cue_id)
        del run[cue_id]

    async def update_status(self, run_id: str, cue_id: str, status: CueStatus) -> Cue:
        run = self._runs.get(run_id, {})
        if cue_id not in run:
            raise CueNotFoundError(cue_id)
        run[cue_id] = replace(run[cue_id], status=status)
        return run[cue_id]

    async def list(self, run_id: str) -> list[Cue]:
        return list(self._runs.get(run_id, {}).values())

    async def reset_all(self, run_id: str) -> None:
        run = self._runs.get(run_id, {})
        for cue_id, cue in run.items():
            run[cue_id] = replace(cue, status=CueStatus.upcoming)
