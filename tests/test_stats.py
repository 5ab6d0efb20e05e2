"""Tests for stats aggregation."""

from __future__ import annotations

from datetime import time

from runsheet.cues.models import Cue, CueStatus
from runsheet.cues.stats import StatsSnapshot, compute_stats


def _cues(*statuses: CueStatus) -> list[Cue]:
    return [
        Cue(
            id=f"c{i}",
            run_id="ws-1",
            scheduled_time=time(9, i % 60),
            duration_minutes=5,
            title=f"Cue {i}",
            status=status,
        )
        for i, status in enumerate(statuses)
    ]


class TestComputeStats:
    def test_empty(self) -> None:
        assert compute_stats([]) == StatsSnapshot(0, 0, 0, 0, 0, 0)

    def test_counts_per_status(self) -> None:
        stats = compute_stats(_cues(
            CueStatus.upcoming,
            CueStatus.upcoming,
            CueStatus.live,
            CueStatus.delayed,
            CueStatus.completed,
            CueStatus.completed,
            CueStatus.completed,
            CueStatus.skipped,
        ))
        assert stats.total == 8
        assert stats.upcoming == 2
        assert stats.live == 1
        assert stats.delayed == 1
        assert stats.completed == 3
        assert stats.skipped == 1

    def test_parts_sum_to_total(self) -> None:
        stats = compute_stats(_cues(*list(CueStatus) * 3))
        assert (
            stats.upcoming + stats.live + stats.delayed + stats.completed + stats.skipped
            == stats.total
        )

    def test_accepts_any_iterable(self) -> None:
        stats = compute_stats(c for c in _cues(CueStatus.live))
        assert stats.live == 1

    def test_to_dict(self) -> None:
        assert compute_stats(_cues(CueStatus.live)).to_dict() == {
            "total": 1,
            "upcoming": 0,
            "live": 1,
            "delayed": 0,
            "completed": 0,
            "skipped": 0,
        }
