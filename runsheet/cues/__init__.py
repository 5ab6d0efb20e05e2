"""Cue scheduling core: cue model, registry, state machine, clock, stats and controller."""

from runsheet.cues.clock import DueInfo, DueState, ScheduleClock
from runsheet.cues.controller import RunController
from runsheet.cues.models import Cue, CueCommand, CueInput, CueStatus, CueType, CueView
from runsheet.cues.registry import CueRegistry
from runsheet.cues.runs import RunControllerRegistry
from runsheet.cues.stats import StatsSnapshot, compute_stats
from runsheet.cues.templates import TemplateLoader

__all__ = [
    "Cue",
    "CueCommand",
    "CueInput",
    "CueRegistry",
    "CueStatus",
    "CueType",
    "CueView",
    "DueInfo",
    "DueState",
    "RunController",
    "RunControllerRegistry",
    "ScheduleClock",
    "StatsSnapshot",
    "TemplateLoader",
    "compute_stats",
]
