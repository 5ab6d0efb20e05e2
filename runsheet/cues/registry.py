from __future__ import annotations

import itertools
import uuid
from collections.abc import Iterable
from dataclasses import replace

import structlog

from runsheet.cues.models import Cue, CueStatus, validate_cue_fields
from runsheet.infra.errors import CueNotFoundError, CueValidationError

logger = structlog.get_logger()


class CueRegistry:
    """Ordered collection of cues for one run.

    Listing is sorted by scheduled_time; ties keep insertion order.
    Status changes go through RunController so the transition table is
    enforced in one place; replace() and reset_all() are its hooks.
    """

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self._cues: dict[str, Cue] = {}
        self._order: dict[str, int] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._cues)

    def __contains__(self, cue_id: object) -> bool:
        return cue_id in self._cues

    def add(self, cue: Cue) -> Cue:
        """Insert a new cue. Assigns an id when missing; status is forced to upcoming.

        Raises CueValidationError on invariant violations or a duplicate id.
        """
        validate_cue_fields(cue.title, cue.duration_minutes)
        cue = replace(
            cue,
            id=cue.id or str(uuid.uuid4()),
            run_id=self.run_id,
            status=CueStatus.upcoming,
        )
        self._insert(cue)
        return cue

    def load(self, cues: Iterable[Cue]) -> None:
        """Replace contents with persisted cues, keeping their stored status.

        Input order is treated as creation order.
        """
        self._cues.clear()
        self._order.clear()
        for cue in cues:
            validate_cue_fields(cue.title, cue.duration_minutes)
            self._insert(cue)
        logger.debug("registry_loaded", run_id=self.run_id, cue_count=len(self._cues))

    def get(self, cue_id: str) -> Cue:
        try:
            return self._cues[cue_id]
        except KeyError:
            raise CueNotFoundError(cue_id) from None

    def remove(self, cue_id: str) -> None:
        if cue_id not in self._cues:
            raise CueNotFoundError(cue_id)
        del self._cues[cue_id]
        del self._order[cue_id]

    def replace(self, cue: Cue) -> Cue:
        """Swap in a new version of an existing cue (same id)."""
        if cue.id not in self._cues:
            raise CueNotFoundError(cue.id)
        self._cues[cue.id] = cue
        return cue

    def reset_all(self) -> None:
        """Force every cue back to upcoming (administrative override)."""
        for cue_id, cue in self._cues.items():
            if cue.status != CueStatus.upcoming:
                self._cues[cue_id] = replace(cue, status=CueStatus.upcoming)

    def list(self) -> list[Cue]:
        """Snapshot of all cues in schedule order."""
        return sorted(
            self._cues.values(),
            key=lambda c: (c.scheduled_time, self._order[c.id]),
        )

    def _insert(self, cue: Cue) -> None:
        if cue.id in self._cues:
            raise CueValidationError(f"Duplicate cue id: {cue.id}")
        self._cues[cue.id] = cue
        self._order[cue.id] = next(self._counter)
