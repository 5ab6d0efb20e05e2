from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import asdict, dataclass

from runsheet.cues.models import Cue, CueStatus


@dataclass(frozen=True)
class StatsSnapshot:
    total: int
    upcoming: int
    live: int
    delayed: int
    completed: int
    skipped: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def compute_stats(cues: Iterable[Cue]) -> StatsSnapshot:
    """Count cues per status. Holds no state; always derived from the snapshot given."""
    counts = Counter(cue.status for cue in cues)
    return StatsSnapshot(
        total=sum(counts.values()),
        upcoming=counts[CueStatus.upcoming],
        live=counts[CueStatus.live],
        delayed=counts[CueStatus.delayed],
        completed=counts[CueStatus.completed],
        skipped=counts[CueStatus.skipped],
    )
