from __future__ import annotations

import uuid
from datetime import UTC, datetime

import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from runsheet.cues.models import Cue, CueInput, CueStatus, CueType
from runsheet.infra.errors import CueNotFoundError
from runsheet.store.base import CueStore
from runsheet.store.models import CueRecord

logger = structlog.get_logger()


class SqlCueStore(CueStore):
    """CueStore backed by the runsheet.cues table.

    Each call runs in its own transaction and commits before returning, so a
    returned value means the write is durable. SQLAlchemy's async context
    manager rolls back on exception and the error propagates to the caller.
    """

    def __init__(self, db_session_factory: async_sessionmaker) -> None:
        self._db = db_session_factory

    async def create(self, run_id: str, cue_input: CueInput) -> Cue:
        async with self._db() as db_session:
            stmt = (
                insert(CueRecord)
                .values(
                    id=str(uuid.uuid4()),
                    run_id=run_id,
                    scheduled_time=cue_input.scheduled_time,
                    duration_minutes=cue_input.duration_minutes,
                    title=cue_input.title,
                    cue_type=cue_input.cue_type.value,
                    description=cue_input.description,
                    technician_id=cue_input.technician_id,
                    notes=cue_input.notes,
                    status=CueStatus.upcoming.value,
                )
                .returning(CueRecord)
            )
            result = await db_session.execute(stmt)
            record = result.scalar_one()
            await db_session.commit()
        logger.debug("cue_persisted", run_id=run_id, cue_id=record.id)
        return _record_to_cue(record)

    async def delete(self, run_id: str, cue_id: str) -> None:
        async with self._db() as db_session:
            stmt = (
                delete(CueRecord)
                .where(CueRecord.run_id == run_id, CueRecord.id == cue_id)
                .returning(CueRecord.id)
            )
            result = await db_session.execute(stmt)
            if result.scalar_one_or_none() is None:
                raise CueNotFoundError(cue_id)
            await db_session.commit()

    async def update_status(self, run_id: str, cue_id: str, status: CueStatus) -> Cue:
        async with self._db() as db_session:
            stmt = (
                update(CueRecord)
                .where(CueRecord.run_id == run_id, CueRecord.id == cue_id)
                .values(status=status.value)
                .returning(CueRecord)
            )
            result = await db_session.execute(stmt)
            record = result.scalar_one_or_none()
            if record is None:
                raise CueNotFoundError(cue_id)
            await db_session.commit()
        return _record_to_cue(record)

    async def list(self, run_id: str) -> list[Cue]:
        async with self._db() as db_session:
            stmt = (
                select(CueRecord)
                .where(CueRecord.run_id == run_id)
                .order_by(CueRecord.seq)
            )
            result = await db_session.execute(stmt)
            records = result.scalars().all()
        return [_record_to_cue(r) for r in records]

    async def reset_all(self, run_id: str) -> None:
        async with self._db() as db_session:
            await db_session.execute(
                update(CueRecord)
                .where(
                    CueRecord.run_id == run_id,
                    CueRecord.status != CueStatus.upcoming.value,
                )
                .values(status=CueStatus.upcoming.value)
            )
            await db_session.commit()


def _record_to_cue(record: CueRecord) -> Cue:
    return Cue(
        id=record.id,
        run_id=record.run_id,
        scheduled_time=record.scheduled_time,
        duration_minutes=record.duration_minutes,
        title=record.title,
        cue_type=CueType(record.cue_type),
        description=record.description,
        technician_id=record.technician_id,
        notes=record.notes,
        status=CueStatus(record.status),
        created_at=(
            record.created_at.replace(tzinfo=UTC)
            if record.created_at and record.created_at.tzinfo is None
            else record.created_at or datetime.now(UTC)
        ),
    )
