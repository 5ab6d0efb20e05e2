"""Integration tests for the PostgreSQL cue store and team directory.

Covers: create/list ordering by insertion, status updates, delete, reset-all,
run isolation, not-found mapping, and controller hydration across restarts.
"""

from __future__ import annotations

from datetime import time

import pytest
from sqlalchemy import insert

from runsheet.cues.clock import ScheduleClock
from runsheet.cues.controller import RunController
from runsheet.cues.models import CueStatus, CueType
from runsheet.infra.errors import CueNotFoundError
from runsheet.store.directory import SqlTeamDirectory
from runsheet.store.models import TeamMemberRecord
from runsheet.store.sql import SqlCueStore
from tests.conftest import FIXED_NOW, make_input

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


@pytest.fixture
def sql_store(db_session_factory) -> SqlCueStore:
    return SqlCueStore(db_session_factory)


class TestSqlCueStore:
    async def test_create_round_trips_fields(self, sql_store: SqlCueStore) -> None:
        cue = await sql_store.create(
            "ws-1",
            make_input(
                "Sound Check",
                "08:30",
                30,
                cue_type="audio",
                description="Line check",
                technician_id="t-1",
                notes="Spare batteries",
            ),
        )

        assert cue.id
        assert cue.run_id == "ws-1"
        assert cue.scheduled_time == time(8, 30)
        assert cue.cue_type == CueType.audio
        assert cue.status == CueStatus.upcoming
        assert cue.created_at.tzinfo is not None

        [listed] = await sql_store.list("ws-1")
        assert listed == cue

    async def test_list_in_insertion_order(self, sql_store: SqlCueStore) -> None:
        for title in ("C", "A", "B"):
            await sql_store.create("ws-1", make_input(title))
        assert [c.title for c in await sql_store.list("ws-1")] == ["C", "A", "B"]

    async def test_runs_are_isolated(self, sql_store: SqlCueStore) -> None:
        await sql_store.create("ws-1", make_input("A"))
        await sql_store.create("ws-1:gala", make_input("B"))

        assert [c.title for c in await sql_store.list("ws-1")] == ["A"]
        assert [c.title for c in await sql_store.list("ws-1:gala")] == ["B"]

    async def test_update_status(self, sql_store: SqlCueStore) -> None:
        cue = await sql_store.create("ws-1", make_input())
        updated = await sql_store.update_status("ws-1", cue.id, CueStatus.live)

        assert updated.status == CueStatus.live
        assert (await sql_store.list("ws-1"))[0].status == CueStatus.live

    async def test_update_wrong_run_not_found(self, sql_store: SqlCueStore) -> None:
        cue = await sql_store.create("ws-1", make_input())
        with pytest.raises(CueNotFoundError):
            await sql_store.update_status("ws-2", cue.id, CueStatus.live)

    async def test_delete(self, sql_store: SqlCueStore) -> None:
        cue = await sql_store.create("ws-1", make_input())
        await sql_store.delete("ws-1", cue.id)

        assert await sql_store.list("ws-1") == []
        with pytest.raises(CueNotFoundError):
            await sql_store.delete("ws-1", cue.id)

    async def test_reset_all_touches_only_run(self, sql_store: SqlCueStore) -> None:
        a = await sql_store.create("ws-1", make_input("A"))
        b = await sql_store.create("ws-1", make_input("B"))
        other = await sql_store.create("ws-2", make_input("C"))
        await sql_store.update_status("ws-1", a.id, CueStatus.completed)
        await sql_store.update_status("ws-1", b.id, CueStatus.skipped)
        await sql_store.update_status("ws-2", other.id, CueStatus.live)

        await sql_store.reset_all("ws-1")

        assert {c.status for c in await sql_store.list("ws-1")} == {CueStatus.upcoming}
        assert (await sql_store.list("ws-2"))[0].status == CueStatus.live


class TestSqlTeamDirectory:
    async def test_names_of(self, db_session_factory) -> None:
        async with db_session_factory() as db_session:
            await db_session.execute(
                insert(TeamMemberRecord).values(
                    [
                        {"id": "t-1", "workspace_id": "ws-1", "name": "Priya"},
                        {"id": "t-2", "workspace_id": "ws-1", "name": "Jonas"},
                    ]
                )
            )
            await db_session.commit()

        directory = SqlTeamDirectory(db_session_factory)

        assert await directory.names_of(["t-1", "t-2", "t-9"]) == {"t-1": "Priya", "t-2": "Jonas"}
        assert await directory.name_of("t-9") is None
        assert await directory.names_of([]) == {}


class TestControllerHydration:
    async def test_state_survives_restart(self, sql_store: SqlCueStore) -> None:
        clock = ScheduleClock(lambda: FIXED_NOW)
        first = RunController("ws-1", sql_store, clock=clock)
        await first.hydrate()
        late = await first.create_cue(make_input("Late", "10:00"))
        early = await first.create_cue(make_input("Early", "08:00"))
        await first.start_cue(late.id)
        await first.delay_cue(late.id)

        second = RunController("ws-1", sql_store, clock=clock)
        await second.hydrate()

        assert [c.id for c in second.list_cues()] == [early.id, late.id]
        assert second.get_cue(late.id).status == CueStatus.delayed
        assert second.stats() == first.stats()
