"""FastAPI gateway: one WebSocket carrying JSON RPC frames for run control.

Each inbound text frame is answered by exactly one response or error frame
with the same id. Errors never close the socket.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from runsheet.config.settings import get_settings
from runsheet.cues.clock import ScheduleClock
from runsheet.cues.runs import RunControllerRegistry
from runsheet.cues.templates import TemplateLoader
from runsheet.gateway.dispatch import dispatch_command
from runsheet.gateway.protocol import RPCError, RPCErrorData, RPCResponse, parse_rpc_request
from runsheet.infra.errors import RunsheetError
from runsheet.infra.logging import request_context, setup_logging
from runsheet.store.database import create_db_engine, ensure_schema, make_session_factory
from runsheet.store.directory import SqlTeamDirectory, StaticTeamDirectory
from runsheet.store.memory import InMemoryCueStore
from runsheet.store.sql import SqlCueStore

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from runsheet.config.settings import Settings
    from runsheet.store.base import CueStore
    from runsheet.store.directory import TeamDirectory

logger = structlog.get_logger()


async def _open_backend(
    settings: Settings,
) -> tuple[CueStore, TeamDirectory, AsyncEngine | None]:
    """Build the cue store and team directory for the configured backend."""
    if settings.runsheet.store_backend == "memory":
        logger.warning("memory_store_enabled", msg="Cues are lost on restart")
        return InMemoryCueStore(), StaticTeamDirectory(), None

    # Postgres is mandatory for this backend; startup fails if it is unreachable.
    engine = await create_db_engine(settings.database)
    await ensure_schema(engine, settings.database.schema_)
    db_session_factory = make_session_factory(engine)
    logger.info("db_connected", database=settings.database.name)
    return SqlCueStore(db_session_factory), SqlTeamDirectory(db_session_factory), engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(json_output=settings.logging.json_output, log_level=settings.logging.level)

    store, directory, engine = await _open_backend(settings)
    runs = RunControllerRegistry(
        store,
        directory=directory,
        clock=ScheduleClock(tz=settings.runsheet.timezone),
        store_timeout_s=settings.runsheet.store_timeout_s,
        single_live=settings.runsheet.single_live_cue,
        max_runs=settings.runsheet.max_loaded_runs,
    )
    app.state.runs = runs
    app.state.templates = TemplateLoader(runs)
    logger.info(
        "gateway_started",
        host=settings.gateway.host,
        port=settings.gateway.port,
        store_backend=settings.runsheet.store_backend,
        timezone=settings.runsheet.timezone,
        single_live_cue=settings.runsheet.single_live_cue,
    )

    try:
        yield
    finally:
        if engine is not None:
            await engine.dispose()
            logger.info("db_engine_disposed")


app = FastAPI(title="Runsheet Gateway", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    logger.info("ws_connected")
    try:
        while True:
            raw = await websocket.receive_text()
            await _handle_rpc_message(websocket, raw)
    except WebSocketDisconnect:
        logger.info("ws_disconnected")


async def _handle_rpc_message(websocket: WebSocket, raw: str) -> None:
    request_id = "unknown"
    try:
        request = parse_rpc_request(raw)
        request_id = request.id
        with request_context(
            request_id=request_id,
            method=request.method,
            workspace_id=request.params.get("workspace_id"),
            event_id=request.params.get("event_id"),
        ):
            data = await dispatch_command(
                runs=websocket.app.state.runs,
                templates=websocket.app.state.templates,
                method=request.method,
                params=request.params,
            )
        frame = RPCResponse(id=request_id, data=data).model_dump_json()
    except RunsheetError as e:
        logger.warning("rpc_failed", code=e.code, error=str(e), request_id=request_id)
        frame = RPCError(
            id=request_id, error=RPCErrorData(code=e.code, message=str(e))
        ).model_dump_json()
    except Exception:
        logger.exception("rpc_unhandled_error", request_id=request_id)
        frame = RPCError(
            id=request_id,
            error=RPCErrorData(code="INTERNAL_ERROR", message="An internal error occurred"),
        ).model_dump_json()
    await websocket.send_text(frame)
