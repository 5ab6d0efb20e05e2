"""JSON frames exchanged over the gateway WebSocket, and per-method params."""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from runsheet.infra.errors import GatewayError


class RunParams(BaseModel):
    """Identifies the run: a workspace, optionally narrowed to one event."""

    workspace_id: str
    event_id: str | None = None

    @field_validator("workspace_id")
    @classmethod
    def _require_workspace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("workspace_id must not be empty")
        return v


class CueRefParams(RunParams):
    cue_id: str


class CreateCueParams(RunParams):
    # Title and duration are checked by CueInput.build so that bad values
    # surface as VALIDATION_ERROR rather than INVALID_PARAMS.
    title: str
    scheduled_time: str = "09:00"
    duration_minutes: int = 15
    cue_type: str = "general"
    description: str | None = None
    technician_id: str | None = None
    notes: str | None = None


class RPCRequest(BaseModel):
    """Inbound frame. params are validated later, per method, by dispatch."""

    type: Literal["request"] = "request"
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    method: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)


class RPCResponse(BaseModel):
    type: Literal["response"] = "response"
    id: str
    data: dict[str, Any]


class RPCErrorData(BaseModel):
    code: str
    message: str


class RPCError(BaseModel):
    type: Literal["error"] = "error"
    id: str
    error: RPCErrorData


def parse_rpc_request(raw: str) -> RPCRequest:
    """Decode one text frame.

    Raises GatewayError(code="PARSE_ERROR") for malformed JSON or a frame
    that is not a request.
    """
    try:
        return RPCRequest.model_validate_json(raw)
    except ValidationError as e:
        if any(err["type"] == "json_invalid" for err in e.errors()):
            raise GatewayError(f"Invalid JSON: {e.errors()[0]['msg']}", code="PARSE_ERROR") from e
        raise GatewayError(f"Invalid RPC request: {e}", code="PARSE_ERROR") from e
