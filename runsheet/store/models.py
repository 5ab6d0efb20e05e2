"""SQLAlchemy 2.0 async models for cue persistence."""

from __future__ import annotations

from datetime import datetime, time

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Identity,
    Integer,
    String,
    Text,
    Time,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from runsheet.constants import DB_SCHEMA


class Base(DeclarativeBase):
    pass


class CueRecord(Base):
    __tablename__ = "cues"
    __table_args__ = (
        CheckConstraint("duration_minutes >= 1", name="ck_cues_duration_positive"),
        CheckConstraint("length(trim(title)) > 0", name="ck_cues_title_not_empty"),
        CheckConstraint(
            "status IN ('upcoming', 'live', 'delayed', 'completed', 'skipped')",
            name="ck_cues_status",
        ),
        CheckConstraint(
            "cue_type IN ('general', 'audio', 'visual', 'lighting', 'stage')",
            name="ck_cues_cue_type",
        ),
        {"schema": DB_SCHEMA},
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    run_id: Mapped[str] = mapped_column(String(256), index=True)
    # Creation order; breaks ties between cues scheduled at the same minute.
    seq: Mapped[int] = mapped_column(BigInteger, Identity(), unique=True)
    scheduled_time: Mapped[time] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column(Integer)
    title: Mapped[str] = mapped_column(String(256))
    cue_type: Mapped[str] = mapped_column(String(16), default="general")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    technician_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="upcoming")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TeamMemberRecord(Base):
    """Read-only from this service; the workspace directory owns these rows."""

    __tablename__ = "team_members"
    __table_args__ = {"schema": DB_SCHEMA}

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(String(128), index=True)
    name: Mapped[str] = mapped_column(String(256))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
