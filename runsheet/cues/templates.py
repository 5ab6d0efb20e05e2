"""Default technical runsheet template.

Seeding is ordinary cue creation: every template row goes through
RunController.seed, which calls the store's create once per cue.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from runsheet.cues.models import Cue, CueInput, CueType

if TYPE_CHECKING:
    from runsheet.cues.runs import RunControllerRegistry

# (scheduled_time, duration_minutes, title, cue_type, description)
_DEFAULT_ROWS: tuple[tuple[str, int, str, CueType, str], ...] = (
    ("08:00", 30, "Crew Call & Equipment Check", CueType.general,
     "All technicians on site; power, comms and backline checked"),
    ("08:30", 30, "Sound Check", CueType.audio,
     "Line check all microphones and playback sources"),
    ("09:00", 15, "Lighting Presets & Focus", CueType.lighting,
     "Verify stage wash, specials and house light presets"),
    ("09:15", 15, "Presentation & Video Playback Test", CueType.visual,
     "Run through slide decks and video rolls on all screens"),
    ("09:30", 30, "Doors Open - Walk-in Music", CueType.audio,
     "Walk-in playlist at background level, holding slide on screens"),
    ("10:00", 5, "House Lights Down - Show Open", CueType.lighting,
     "Fade house to black, stage wash up"),
    ("10:05", 15, "Opening Address", CueType.stage,
     "Podium mic live, speaker lower-third on screens"),
    ("10:20", 45, "Keynote Session", CueType.visual,
     "Speaker slides, lapel mic live, confidence monitor on"),
    ("11:05", 15, "Break - Walk-in Music", CueType.general,
     "House lights up, break slide on screens"),
    ("11:20", 10, "Closing Remarks & Outro Video", CueType.visual,
     "Roll outro video, then closing remarks from podium"),
    ("11:30", 10, "House Lights Up - Exit Music", CueType.lighting,
     "House to full, exit playlist, stage wash down"),
)


def default_template() -> list[CueInput]:
    return [
        CueInput.build(
            scheduled_time=scheduled_time,
            duration_minutes=duration,
            title=title,
            cue_type=cue_type,
            description=description,
        )
        for scheduled_time, duration, title, cue_type, description in _DEFAULT_ROWS
    ]


class TemplateLoader:
    """Seeds a run with the default template through ordinary cue creation."""

    def __init__(self, runs: RunControllerRegistry) -> None:
        self._runs = runs

    async def load_default_template(self, run_id: str) -> list[Cue]:
        """Create the default cues in an empty run.

        Raises RunsheetError(code="RUNSHEET_NOT_EMPTY") if the run already has cues.
        """
        controller = await self._runs.get(run_id)
        return await controller.seed(default_template())
