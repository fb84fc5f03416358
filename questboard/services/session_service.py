"""
questboard.services.session_service — Browse, Create, Edit, Delete
===================================================================

Reads take a request-scoped :class:`Session`; writes take the
:class:`Engine` and run in their own transaction, like the admission
operations in :mod:`questboard.services.participation_service`.

Player counts are always derived from live participant rows, never
stored on the session.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Engine, func, or_, select
from sqlalchemy.orm import Session, selectinload

from questboard.database.models import (
    GameSession,
    GameSystem,
    ParticipantStatus,
    SessionParticipant,
    SessionState,
    SessionType,
    TimeSuggestion,
    User,
)
from questboard.engine.locations import location_city, location_to_dict, parse_location
from questboard.errors import (
    CapacityBelowRoster,
    GameSystemNotFound,
    InvalidSessionData,
    NotSessionOwner,
    SessionNotFound,
)
from questboard.services.participation_service import lock_game_session, transact

logger = logging.getLogger(__name__)

# Columns a GM may change through update_session()
EDITABLE_FIELDS: frozenset[str] = frozenset({
    "title",
    "description",
    "game_system_id",
    "state",
    "session_type",
    "planned_sessions",
    "date",
    "start_time",
    "duration",
    "timezone",
    "decision_date",
    "max_players",
    "is_online",
    "location",
    "image_url",
    "character_creation",
    "time_suggestions",
})


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SessionFilters:
    """Browse filters; ``None`` means "don't filter on this"."""

    game_system: str | None = None   # system id or display name
    is_online: bool | None = None
    city: str | None = None          # case-insensitive substring
    state: str | None = None         # Published / Suggested


@dataclass(slots=True)
class SessionSummary:
    game_session: GameSession
    current_players: int = 0
    waiting_list_count: int = 0


@dataclass(slots=True)
class SessionDetail:
    game_session: GameSession
    players: list[User] = field(default_factory=list)
    waiting_list: list[User] = field(default_factory=list)

    @property
    def current_players(self) -> int:
        return len(self.players)

    @property
    def waiting_list_count(self) -> int:
        return len(self.waiting_list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def compute_end_time(start_time: dt.time | None, duration: int) -> dt.time | None:
    """Start time plus *duration* minutes, wrapping past midnight."""
    if start_time is None:
        return None
    start = dt.datetime.combine(dt.date(2000, 1, 1), start_time)
    return (start + dt.timedelta(minutes=duration)).time()


def roster_counts(session: Session, session_ids: list[int]) -> dict[int, tuple[int, int]]:
    """Map session id → (active count, waiting count) over live records."""
    if not session_ids:
        return {}
    rows = session.execute(
        select(
            SessionParticipant.session_id,
            SessionParticipant.status,
            func.count().label("cnt"),
        )
        .where(
            SessionParticipant.session_id.in_(session_ids),
            SessionParticipant.cancelled_at.is_(None),
        )
        .group_by(SessionParticipant.session_id, SessionParticipant.status)
    ).all()

    counts: dict[int, list[int]] = {sid: [0, 0] for sid in session_ids}
    for row in rows:
        slot = 0 if row.status == ParticipantStatus.ACTIVE.value else 1
        counts[row.session_id][slot] = row.cnt
    return {sid: (active, waiting) for sid, (active, waiting) in counts.items()}


def _require_game_system(session: Session, game_system_id: str) -> None:
    if session.get(GameSystem, game_system_id) is None:
        raise GameSystemNotFound(game_system_id)


def _normalise_schedule(game_session: GameSession) -> None:
    """Enforce the state / type rules on the final field values."""
    if game_session.state == SessionState.SUGGESTED.value:
        game_session.date = None
        game_session.start_time = None
        game_session.end_time = None
        if not game_session.time_suggestions:
            raise InvalidSessionData("Suggested sessions need at least one time suggestion")
        if game_session.decision_date is None:
            raise InvalidSessionData("Suggested sessions need a decision date")
    else:
        if game_session.date is None or game_session.start_time is None:
            raise InvalidSessionData("Published sessions need a date and a start time")
        game_session.end_time = compute_end_time(
            game_session.start_time, game_session.duration
        )

    if game_session.session_type == SessionType.ONE_TIME.value:
        game_session.planned_sessions = 1
    elif not game_session.planned_sessions or game_session.planned_sessions < 2:
        raise InvalidSessionData("Recurring sessions need at least 2 planned sessions")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def list_game_systems(session: Session) -> list[GameSystem]:
    return list(session.scalars(select(GameSystem).order_by(GameSystem.name)).all())


def list_sessions(session: Session, filters: SessionFilters | None = None) -> list[SessionSummary]:
    """Sessions matching *filters*, soonest first; unscheduled ones last."""
    filters = filters or SessionFilters()
    query = (
        select(GameSession)
        .join(GameSystem)
        .options(selectinload(GameSession.game_system))
    )

    if filters.game_system:
        query = query.where(or_(
            GameSession.game_system_id == filters.game_system,
            GameSystem.name == filters.game_system,
        ))
    if filters.is_online is not None:
        query = query.where(GameSession.is_online == filters.is_online)
    if filters.state:
        query = query.where(GameSession.state == filters.state)

    query = query.order_by(
        GameSession.date.is_(None),
        GameSession.date,
        GameSession.start_time,
        GameSession.id,
    )
    sessions = list(session.scalars(query).all())

    # Location is a JSON document, so the city match happens here.
    if filters.city:
        needle = filters.city.casefold()
        sessions = [
            gs for gs in sessions
            if not gs.is_online
            and needle in (location_city(parse_location(False, gs.location)) or "").casefold()
        ]

    counts = roster_counts(session, [gs.id for gs in sessions])
    return [
        SessionSummary(gs, *counts.get(gs.id, (0, 0)))
        for gs in sessions
    ]


def get_session_detail(session: Session, session_id: int) -> SessionDetail:
    """One session with its seated players and waiting list, both FIFO."""
    game_session = session.scalar(
        select(GameSession)
        .where(GameSession.id == session_id)
        .options(
            selectinload(GameSession.gm),
            selectinload(GameSession.game_system),
            selectinload(GameSession.time_suggestions),
        )
    )
    if game_session is None:
        raise SessionNotFound(session_id)

    rows = session.execute(
        select(SessionParticipant.status, User)
        .join(User, SessionParticipant.user_id == User.id)
        .where(
            SessionParticipant.session_id == session_id,
            SessionParticipant.cancelled_at.is_(None),
        )
        .order_by(SessionParticipant.queue_nr)
    ).all()

    detail = SessionDetail(game_session)
    for status, user in rows:
        if status == ParticipantStatus.ACTIVE.value:
            detail.players.append(user)
        else:
            detail.waiting_list.append(user)
    return detail


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def create_session(
    engine: Engine,
    *,
    gm_id: str,
    title: str,
    description: str,
    game_system_id: str,
    duration: int,
    max_players: int,
    is_online: bool,
    timezone: str,
    state: str = SessionState.PUBLISHED.value,
    session_type: str = SessionType.ONE_TIME.value,
    planned_sessions: int | None = None,
    date: dt.date | None = None,
    start_time: dt.time | None = None,
    decision_date: dt.date | None = None,
    location: dict[str, Any] | None = None,
    image_url: str | None = None,
    character_creation: str = "pregenerated",
    time_suggestions: list[tuple[dt.date, dt.time]] | None = None,
) -> GameSession:
    """Insert a new session owned by *gm_id* and return it (detached)."""
    def work(session: Session) -> GameSession:
        _require_game_system(session, game_system_id)
        game_session = GameSession(
            gm_id=gm_id,
            title=title,
            description=description,
            game_system_id=game_system_id,
            duration=duration,
            max_players=max_players,
            is_online=is_online,
            timezone=timezone,
            state=state,
            session_type=session_type,
            planned_sessions=planned_sessions or 1,
            date=date,
            start_time=start_time,
            decision_date=decision_date,
            location=location_to_dict(parse_location(is_online, location)),
            image_url=image_url or None,
            character_creation=character_creation,
            time_suggestions=[
                TimeSuggestion(date=d, time=t) for d, t in (time_suggestions or [])
            ],
        )
        _normalise_schedule(game_session)
        session.add(game_session)
        session.flush()
        return game_session

    game_session = transact(engine, "create session", work)
    logger.info("Session %d %r created by %s", game_session.id, title, gm_id)
    return game_session


def update_session(
    engine: Engine,
    session_id: int,
    *,
    actor_id: str,
    changes: dict[str, Any],
) -> GameSession:
    """Apply *changes* to a session owned by *actor_id*.

    ``location`` is the raw JSON payload; it is re-validated against the
    resulting ``is_online`` flag.  ``time_suggestions`` replaces the
    existing list.  ``max_players`` cannot drop below the seated count.
    """
    def work(session: Session) -> GameSession:
        game_session = lock_game_session(session, session_id)
        if game_session.gm_id != actor_id:
            raise NotSessionOwner()

        if "game_system_id" in changes:
            _require_game_system(session, changes["game_system_id"])

        if "max_players" in changes:
            active, _ = roster_counts(session, [session_id])[session_id]
            if changes["max_players"] < active:
                raise CapacityBelowRoster(changes["max_players"], active)

        for key, value in changes.items():
            if key not in EDITABLE_FIELDS or key in ("location", "time_suggestions"):
                continue
            setattr(game_session, key, value)

        if "image_url" in changes:
            game_session.image_url = changes["image_url"] or None

        if "time_suggestions" in changes:
            game_session.time_suggestions = [
                TimeSuggestion(date=d, time=t) for d, t in changes["time_suggestions"]
            ]

        if "location" in changes or "is_online" in changes:
            raw = changes["location"] if "location" in changes else game_session.location
            game_session.location = location_to_dict(
                parse_location(game_session.is_online, raw)
            )

        _normalise_schedule(game_session)
        session.flush()
        return game_session

    game_session = transact(engine, "update session", work)
    logger.info("Session %d updated by %s: %s", session_id, actor_id, sorted(changes))
    return game_session


def delete_session(engine: Engine, session_id: int, *, actor_id: str) -> None:
    """Delete a session and its participant records (GM only)."""
    def work(session: Session) -> None:
        game_session = lock_game_session(session, session_id)
        if game_session.gm_id != actor_id:
            raise NotSessionOwner()
        session.delete(game_session)

    transact(engine, "delete session", work)
    logger.info("Session %d deleted by %s", session_id, actor_id)
