"""Cue domain types: statuses, commands, the Cue entity and its input DTO."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, time
from enum import StrEnum
from typing import Any

from runsheet.infra.errors import CueValidationError


class CueStatus(StrEnum):
    upcoming = "upcoming"
    live = "live"
    delayed = "delayed"
    completed = "completed"
    skipped = "skipped"


class CueType(StrEnum):
    general = "general"
    audio = "audio"
    visual = "visual"
    lighting = "lighting"
    stage = "stage"


class CueCommand(StrEnum):
    """Operator commands routed through the state machine."""

    start = "start"
    complete = "complete"
    skip = "skip"
    delay = "delay"


@dataclass(frozen=True)
class Cue:
    """A single timed technical action in a run-of-show.

    Immutable: status changes produce a new instance via dataclasses.replace.
    """

    id: str
    run_id: str
    scheduled_time: time
    duration_minutes: int
    title: str
    cue_type: CueType = CueType.general
    description: str | None = None
    technician_id: str | None = None
    notes: str | None = None
    status: CueStatus = CueStatus.upcoming
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "run_id": self.run_id,
            "scheduled_time": self.scheduled_time.strftime("%H:%M"),
            "duration_minutes": self.duration_minutes,
            "title": self.title,
            "cue_type": self.cue_type.value,
            "description": self.description,
            "technician_id": self.technician_id,
            "notes": self.notes,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class CueInput:
    """Validated payload for creating a cue. Build with CueInput.build()."""

    scheduled_time: time
    duration_minutes: int
    title: str
    cue_type: CueType = CueType.general
    description: str | None = None
    technician_id: str | None = None
    notes: str | None = None

    @classmethod
    def build(
        cls,
        *,
        scheduled_time: time | str,
        duration_minutes: int,
        title: str,
        cue_type: CueType | str = CueType.general,
        description: str | None = None,
        technician_id: str | None = None,
        notes: str | None = None,
    ) -> CueInput:
        """Normalize and validate raw fields.

        Raises CueValidationError on empty title, duration < 1, an unknown
        cue type or an unparseable time. Blank optional fields become None.
        """
        title = (title or "").strip()
        validate_cue_fields(title, duration_minutes)
        return cls(
            scheduled_time=parse_scheduled_time(scheduled_time),
            duration_minutes=duration_minutes,
            title=title,
            cue_type=_parse_cue_type(cue_type),
            description=_blank_to_none(description),
            technician_id=_blank_to_none(technician_id),
            notes=_blank_to_none(notes),
        )


@dataclass(frozen=True)
class CueView:
    """Display projection of a cue: technician name and advisory due state.

    due_state is "overdue" only for open cues (upcoming, live, delayed) whose
    slot has ended; completed and skipped cues read "on_time" at that point.
    """

    cue: Cue
    technician_name: str | None
    due_state: str
    overdue_by_minutes: int | None

    @property
    def duration_label(self) -> str:
        return format_duration(self.cue.duration_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.cue.to_dict(),
            "technician_name": self.technician_name,
            "due_state": self.due_state,
            "overdue_by_minutes": self.overdue_by_minutes,
            "duration_label": self.duration_label,
        }


def validate_cue_fields(title: str, duration_minutes: int) -> None:
    """Check the cue invariants shared by creation and registry insertion."""
    if not title or not title.strip():
        raise CueValidationError("Cue title must not be empty")
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise CueValidationError(
            f"duration_minutes must be an integer (got {type(duration_minutes).__name__})"
        )
    if duration_minutes < 1:
        raise CueValidationError(
            f"duration_minutes must be at least 1 (got {duration_minutes})"
        )


def parse_scheduled_time(value: time | str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' into a minute-precision time of day."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if not isinstance(value, str):
        raise CueValidationError(f"scheduled_time must be 'HH:MM' (got {value!r})")
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            parsed = datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
        return parsed.replace(second=0)
    raise CueValidationError(f"scheduled_time must be 'HH:MM' (got {value!r})")


def format_duration(minutes: int) -> str:
    """Compact label: 45 -> '45m', 60 -> '1h', 90 -> '1h 30m'."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


def resolve_run_id(workspace_id: str, event_id: str | None = None) -> str:
    """Resolve the run key for a workspace and optional event.

    - no event -> "{workspace_id}"
    - event    -> "{workspace_id}:{event_id}"
    """
    workspace_id = workspace_id.strip()
    if not workspace_id:
        raise CueValidationError("workspace_id must not be empty")
    event_id = (event_id or "").strip()
    if event_id:
        return f"{workspace_id}:{event_id}"
    return workspace_id


def _parse_cue_type(value: CueType | str) -> CueType:
    try:
        return CueType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in CueType)
        raise CueValidationError(
            f"cue_type must be one of {allowed} (got {value!r})"
        ) from None


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
