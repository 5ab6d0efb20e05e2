"""Core dispatch: RPC method -> run lookup -> RunController command -> response payload.

Transport-agnostic; the WebSocket handler in app.py only parses frames and
serializes what this returns. Domain errors propagate as RunsheetError.
"""

from __future__ import annotations

from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from runsheet.cues.controller import RunController
from runsheet.cues.models import Cue, CueCommand, CueInput, resolve_run_id
from runsheet.cues.runs import RunControllerRegistry
from runsheet.cues.state_machine import allowed_commands
from runsheet.cues.templates import TemplateLoader
from runsheet.gateway.protocol import CreateCueParams, CueRefParams, RunParams
from runsheet.infra.errors import GatewayError

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

_TRANSITION_METHODS: dict[str, CueCommand] = {
    "cue.start": CueCommand.start,
    "cue.complete": CueCommand.complete,
    "cue.skip": CueCommand.skip,
    "cue.delay": CueCommand.delay,
}

METHODS: frozenset[str] = frozenset({
    "cue.create",
    "cue.delete",
    *_TRANSITION_METHODS,
    "runsheet.reset",
    "runsheet.list",
    "runsheet.stats",
    "runsheet.template",
})


def cue_payload(cue: Cue) -> dict[str, Any]:
    """Cue dict plus the commands an operator may issue next."""
    return {
        **cue.to_dict(),
        "allowed_commands": [c.value for c in allowed_commands(cue.status)],
    }


async def dispatch_command(
    *,
    runs: RunControllerRegistry,
    templates: TemplateLoader,
    method: str,
    params: dict[str, Any],
) -> dict[str, Any]:
    """Run one RPC method and return its response data.

    Raises GatewayError for unknown methods (METHOD_NOT_FOUND) and malformed
    params (INVALID_PARAMS); domain errors from the controller pass through.
    """
    if method not in METHODS:
        raise GatewayError(f"Unknown method: {method}", code="METHOD_NOT_FOUND")
    logger.debug("rpc_dispatch", method=method)

    if method == "cue.create":
        parsed = _parse(CreateCueParams, params)
        controller = await _controller(runs, parsed)
        cue_input = CueInput.build(
            scheduled_time=parsed.scheduled_time,
            duration_minutes=parsed.duration_minutes,
            title=parsed.title,
            cue_type=parsed.cue_type,
            description=parsed.description,
            technician_id=parsed.technician_id,
            notes=parsed.notes,
        )
        cue = await controller.create_cue(cue_input)
        return {"cue": cue_payload(cue), "stats": controller.stats().to_dict()}

    if method == "cue.delete":
        parsed = _parse(CueRefParams, params)
        controller = await _controller(runs, parsed)
        await controller.delete_cue(parsed.cue_id)
        return {"deleted": parsed.cue_id, "stats": controller.stats().to_dict()}

    if method in _TRANSITION_METHODS:
        parsed = _parse(CueRefParams, params)
        controller = await _controller(runs, parsed)
        command = _TRANSITION_METHODS[method]
        handler = {
            CueCommand.start: controller.start_cue,
            CueCommand.complete: controller.complete_cue,
            CueCommand.skip: controller.skip_cue,
            CueCommand.delay: controller.delay_cue,
        }[command]
        cue = await handler(parsed.cue_id)
        return {"cue": cue_payload(cue), "stats": controller.stats().to_dict()}

    parsed = _parse(RunParams, params)

    if method == "runsheet.template":
        run_id = resolve_run_id(parsed.workspace_id, parsed.event_id)
        cues = await templates.load_default_template(run_id)
        controller = await runs.get(run_id)
        return {
            "cues": [cue_payload(c) for c in cues],
            "stats": controller.stats().to_dict(),
        }

    controller = await _controller(runs, parsed)

    if method == "runsheet.reset":
        cues = await controller.reset_all()
        return {
            "cues": [cue_payload(c) for c in cues],
            "stats": controller.stats().to_dict(),
        }

    if method == "runsheet.stats":
        return {"stats": controller.stats().to_dict()}

    # runsheet.list
    views = await controller.list_views()
    return {
        "cues": [
            {
                **v.to_dict(),
                "allowed_commands": [c.value for c in allowed_commands(v.cue.status)],
            }
            for v in views
        ],
        "stats": controller.stats().to_dict(),
    }


async def _controller(runs: RunControllerRegistry, params: RunParams) -> RunController:
    return await runs.get(resolve_run_id(params.workspace_id, params.event_id))


def _parse(model: type[M], params: dict[str, Any]) -> M:
    try:
        return model.model_validate(params)
    except ValidationError as e:
        raise GatewayError(str(e), code="INVALID_PARAMS") from e
