"""Cue status transitions.

The transition table below is the only source of legal status changes.
Reset-all is an administrative override that bypasses it (see
CueRegistry.reset_all / RunController.reset_all).

    upcoming --start-->    live
    upcoming --skip-->     skipped
    live     --complete--> completed
    live     --delay-->    delayed
    delayed  --start-->    live        (resume)

completed and skipped are terminal.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from runsheet.cues.models import Cue, CueCommand, CueStatus
from runsheet.infra.errors import InvalidTransitionError

TRANSITIONS: dict[tuple[CueStatus, CueCommand], CueStatus] = {
    (CueStatus.upcoming, CueCommand.start): CueStatus.live,
    (CueStatus.upcoming, CueCommand.skip): CueStatus.skipped,
    (CueStatus.live, CueCommand.complete): CueStatus.completed,
    (CueStatus.live, CueCommand.delay): CueStatus.delayed,
    (CueStatus.delayed, CueCommand.start): CueStatus.live,
}

TERMINAL_STATUSES: frozenset[CueStatus] = frozenset(
    {CueStatus.completed, CueStatus.skipped}
)


def next_status(status: CueStatus, command: CueCommand) -> CueStatus:
    """Return the target status, or raise InvalidTransitionError."""
    target = TRANSITIONS.get((status, command))
    if target is None:
        raise InvalidTransitionError(command.value, status.value)
    return target


def allowed_commands(status: CueStatus) -> list[CueCommand]:
    """Commands accepted for a cue in the given status, in table order."""
    return [cmd for (src, cmd) in TRANSITIONS if src == status]


def apply(
    cue: Cue,
    command: CueCommand,
    *,
    others: Iterable[Cue] = (),
    single_live: bool = False,
) -> Cue:
    """Return a copy of cue with the command applied. Pure; never mutates.

    With single_live, entering live is rejected while any cue in others is live.
    """
    target = next_status(cue.status, command)
    if single_live and target == CueStatus.live:
        busy = next(
            (o for o in others if o.id != cue.id and o.status == CueStatus.live),
            None,
        )
        if busy is not None:
            raise InvalidTransitionError(
                command.value,
                cue.status.value,
                reason=f"cue {busy.id} ({busy.title}) is already live",
            )
    return replace(cue, status=target)
