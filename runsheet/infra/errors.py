"""Custom exception hierarchy for Runsheet.

All application-specific exceptions inherit from RunsheetError,
which carries an error code for RPC error frame mapping.
"""

from __future__ import annotations


class RunsheetError(Exception):
    """Base exception for all Runsheet errors."""

    def __init__(self, message: str, *, code: str = "INTERNAL_ERROR") -> None:
        super().__init__(message)
        self.code = code


class GatewayError(RunsheetError):
    """Errors in the Gateway / WebSocket layer."""

    def __init__(self, message: str, *, code: str = "GATEWAY_ERROR") -> None:
        super().__init__(message, code=code)


class CueValidationError(RunsheetError):
    """Malformed cue input (empty title, non-positive duration, unknown type)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


class CueNotFoundError(RunsheetError):
    """A command referenced a cue id that is not in the run."""

    def __init__(self, cue_id: str) -> None:
        super().__init__(f"Cue not found: {cue_id}", code="CUE_NOT_FOUND")
        self.cue_id = cue_id


class InvalidTransitionError(RunsheetError):
    """Command is not legal for the cue's current status."""

    def __init__(self, command: str, status: str, *, reason: str = "") -> None:
        message = f"Cannot {command} a cue that is {status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, code="INVALID_TRANSITION")
        self.command = command
        self.status = status


class PersistenceError(RunsheetError):
    """The cue store failed or timed out; no in-memory change was applied."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="PERSISTENCE_ERROR")
