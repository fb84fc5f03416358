"""
questboard.database.models — SQLAlchemy 2.0 Data Models
========================================================

Tables:
- users                — Members known from identity-provider tokens
- game_systems         — Catalogue of supported rule systems
- sessions             — Scheduled or proposed game sessions
- time_suggestions     — Candidate slots for proposed sessions
- session_participants — Seat and waiting-list records (soft-deleted on leave)
"""

from __future__ import annotations

import datetime as dt
import enum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Questboard ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SessionState(enum.StrEnum):
    """Published sessions have a date; suggested ones collect time proposals."""
    PUBLISHED = "Published"
    SUGGESTED = "Suggested"


class SessionType(enum.StrEnum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"


class CharacterCreation(enum.StrEnum):
    PREGENERATED = "pregenerated"
    CREATE_IN_BEGINNING = "create-in-beginning"
    CREATE_BEFORE_SESSION = "create-before-session"


class ParticipantStatus(enum.StrEnum):
    """Fixed when the participant record is inserted."""
    ACTIVE = "active"
    WAITING = "waiting"


# ---------------------------------------------------------------------------
# Users — one row per identity-provider subject
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<User id={self.id!r} name={self.display_name!r}>"


# ---------------------------------------------------------------------------
# GameSystem — seeded catalogue (see questboard.constants.GAME_SYSTEMS)
# ---------------------------------------------------------------------------
class GameSystem(Base):
    __tablename__ = "game_systems"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)

    def __repr__(self) -> str:
        return f"<GameSystem id={self.id!r} name={self.name!r}>"


# ---------------------------------------------------------------------------
# GameSession — the session aggregate (capacity + rosters)
# ---------------------------------------------------------------------------
class GameSession(Base):
    """A scheduled (``Published``) or proposed (``Suggested``) game session.

    ``date``/``start_time``/``end_time`` are NULL until the session is
    scheduled.  Player counts are never stored here; they are derived from
    the live rows in ``session_participants``.
    """
    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    game_system_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("game_systems.id"), nullable=False
    )
    gm_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Scheduling
    state: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SessionState.PUBLISHED.value
    )
    session_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SessionType.ONE_TIME.value
    )
    planned_sessions: Mapped[int] = mapped_column(Integer, default=1)
    date: Mapped[dt.date | None] = mapped_column(Date, default=None)
    start_time: Mapped[dt.time | None] = mapped_column(Time, default=None)
    end_time: Mapped[dt.time | None] = mapped_column(Time, default=None)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    timezone: Mapped[str] = mapped_column(String(50), nullable=False, default="UTC")
    decision_date: Mapped[dt.date | None] = mapped_column(Date, default=None)

    # Table
    max_players: Mapped[int] = mapped_column(Integer, nullable=False)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False)
    location: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), default=None)
    character_creation: Mapped[str] = mapped_column(
        String(30), nullable=False, default=CharacterCreation.PREGENERATED.value
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    game_system: Mapped[GameSystem] = relationship()
    gm: Mapped[User] = relationship()
    participants: Mapped[list[SessionParticipant]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionParticipant.queue_nr",
    )
    time_suggestions: Mapped[list[TimeSuggestion]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="TimeSuggestion.id",
    )

    __table_args__ = (
        Index("ix_sessions_date_time", "date", "start_time"),
        Index("ix_sessions_game_system", "game_system_id"),
    )

    def __repr__(self) -> str:
        return f"<GameSession id={self.id} title={self.title!r} max={self.max_players}>"


# ---------------------------------------------------------------------------
# TimeSuggestion — candidate slots for a proposed session
# ---------------------------------------------------------------------------
class TimeSuggestion(Base):
    __tablename__ = "time_suggestions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    votes: Mapped[int] = mapped_column(Integer, default=0)

    session: Mapped[GameSession] = relationship(back_populates="time_suggestions")

    def __repr__(self) -> str:
        return f"<TimeSuggestion session={self.session_id} at={self.date} {self.time}>"


# ---------------------------------------------------------------------------
# SessionParticipant — seat / waiting-list record
# ---------------------------------------------------------------------------
class SessionParticipant(Base):
    """One join attempt by one user.

    Rows are never deleted on leave: ``cancelled_at`` is set instead, which
    keeps the audit trail and the queue numbering intact.
    """
    __tablename__ = "session_participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    queue_nr: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    joined_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    cancelled_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    session: Mapped[GameSession] = relationship(back_populates="participants")
    user: Mapped[User] = relationship()

    __table_args__ = (
        UniqueConstraint("session_id", "queue_nr", name="uq_participants_session_queue"),
        # At most one live (non-cancelled) record per user and session
        Index(
            "ux_participants_live_user",
            "session_id",
            "user_id",
            unique=True,
            postgresql_where=text("cancelled_at IS NULL"),
            sqlite_where=text("cancelled_at IS NULL"),
        ),
        Index("ix_participants_user", "user_id"),
    )

    @property
    def is_live(self) -> bool:
        return self.cancelled_at is None

    def __repr__(self) -> str:
        return (
            f"<SessionParticipant session={self.session_id} user={self.user_id!r} "
            f"nr={self.queue_nr} status={self.status}>"
        )
