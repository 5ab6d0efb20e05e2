"""Team directory lookups for technician display names.

The directory owns team members; cues only hold a technician id. Names are
display enrichment and never gate a command.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from runsheet.store.models import TeamMemberRecord

logger = structlog.get_logger()


class TeamDirectory(ABC):
    @abstractmethod
    async def name_of(self, technician_id: str) -> str | None:
        """Display name for a technician, or None if unknown."""

    async def names_of(self, technician_ids: Iterable[str]) -> dict[str, str]:
        """Batch lookup. Default implementation calls name_of per id."""
        names: dict[str, str] = {}
        for technician_id in set(technician_ids):
            name = await self.name_of(technician_id)
            if name is not None:
                names[technician_id] = name
        return names


class StaticTeamDirectory(TeamDirectory):
    """Directory over a fixed id -> name mapping."""

    def __init__(self, members: Mapping[str, str] | None = None) -> None:
        self._members = dict(members or {})

    async def name_of(self, technician_id: str) -> str | None:
        return self._members.get(technician_id)


class SqlTeamDirectory(TeamDirectory):
    """Directory backed by the runsheet.team_members table."""

    def __init__(self, db_session_factory: async_sessionmaker) -> None:
        self._db = db_session_factory

    async def name_of(self, technician_id: str) -> str | None:
        names = await self.names_of([technician_id])
        return names.get(technician_id)

    async def names_of(self, technician_ids: Iterable[str]) -> dict[str, str]:
        ids = set(technician_ids)
        if not ids:
            return {}
        async with self._db() as db_session:
            stmt = select(TeamMemberRecord.id, TeamMemberRecord.name).where(
                TeamMemberRecord.id.in_(ids)
            )
            result = await db_session.execute(stmt)
            return {row.id: row.name for row in result}
