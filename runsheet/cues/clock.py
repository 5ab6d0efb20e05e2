"""Advisory schedule clock: is a cue ahead of, at, or behind its slot?

Read-only projection. Never touches cue status and never raises; a failing
or empty time source yields DueState.unknown. Nothing is cached, so each
call reflects the time source at that moment.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import StrEnum
from zoneinfo import ZoneInfo

import structlog

from runsheet.cues.models import Cue
from runsheet.cues.state_machine import TERMINAL_STATUSES

logger = structlog.get_logger()

TimeSource = Callable[[], datetime | None]


class DueState(StrEnum):
    on_time = "on_time"
    due_now = "due_now"
    overdue = "overdue"
    unknown = "unknown"


@dataclass(frozen=True)
class DueInfo:
    state: DueState
    overdue_by: timedelta | None = None

    @property
    def overdue_by_minutes(self) -> int | None:
        if self.overdue_by is None:
            return None
        return int(self.overdue_by.total_seconds() // 60)


UNKNOWN = DueInfo(DueState.unknown)


class ScheduleClock:
    """Classify cues against a run-local wall clock.

    Scheduled times are placed on the current run-local date. Naive datetimes
    from the time source are taken to be run-local already.
    """

    def __init__(self, time_source: TimeSource | None = None, *, tz: tzinfo | str = "UTC") -> None:
        self._tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self._time_source = time_source or (lambda: datetime.now(self._tz))

    def now(self) -> datetime | None:
        """Current run-local time, or None if the time source is unavailable."""
        try:
            current = self._time_source()
        except Exception:
            logger.warning("clock_time_source_failed", exc_info=True)
            return None
        if current is None:
            return None
        if current.tzinfo is None:
            return current.replace(tzinfo=self._tz)
        return current.astimezone(self._tz)

    def due_info(self, cue: Cue, now: datetime | None = None) -> DueInfo:
        """Due state of one cue. Pass now to classify a batch against one instant.

        Completed and skipped cues are never behind schedule: they read
        on_time once their slot has passed, so alerts only fire for open cues.
        """
        if now is None:
            now = self.now()
            if now is None:
                return UNKNOWN
        start = datetime.combine(now.date(), cue.scheduled_time, tzinfo=now.tzinfo)
        end = start + timedelta(minutes=cue.duration_minutes)
        if now < start:
            return DueInfo(DueState.on_time)
        if now < end:
            return DueInfo(DueState.due_now)
        if cue.status in TERMINAL_STATUSES:
            return DueInfo(DueState.on_time)
        return DueInfo(DueState.overdue, overdue_by=now - end)

    def due_infos(self, cues: list[Cue]) -> dict[str, DueInfo]:
        """Due state for each cue id, all measured against a single reading."""
        now = self.now()
        if now is None:
            return {cue.id: UNKNOWN for cue in cues}
        return {cue.id: self.due_info(cue, now) for cue in cues}
