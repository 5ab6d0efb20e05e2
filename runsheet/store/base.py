from __future__ import annotations

from abc import ABC, abstractmethod

from runsheet.cues.models import Cue, CueInput, CueStatus


class CueStore(ABC):
    """Persistence collaborator for cues, keyed by run id.

    Every method either completes the write or raises; callers treat a
    return as the acknowledgement that the change is durable.
    """

    @abstractmethod
    async def create(self, run_id: str, cue_input: CueInput) -> Cue:
        """Persist a new upcoming cue and return it with its assigned id."""

    @abstractmethod
    async def delete(self, run_id: str, cue_id: str) -> None:
        """Delete a cue. Raises CueNotFoundError if absent."""

    @abstractmethod
    async def update_status(self, run_id: str, cue_id: str, status: CueStatus) -> Cue:
        """Set a cue's status and return the stored cue. Raises CueNotFoundError if absent."""

    @abstractmethod
    async def list(self, run_id: str) -> list[Cue]:
        """All cues of a run in creation order."""

    @abstractmethod
    async def reset_all(self, run_id: str) -> None:
        """Set every cue of a run back to upcoming."""
