"""
questboard.services.participation_service — Join / Waiting List / Leave
========================================================================

Transactional wrapper around :mod:`questboard.engine.admission`.
Every operation follows the same pattern:
  1. Begin transaction
  2. Lock the session row (``SELECT … FOR UPDATE``)
  3. Load the live roster snapshot
  4. Ask the engine for a decision (raises a typed error on violation)
  5. Insert / cancel the participant record
  6. Commit

The row lock serialises concurrent joiners for the same session, so two
requests can never both see the last free seat.  SQLite drops
``FOR UPDATE``; there a writer that read a stale roster collides with
the unique ``(session_id, queue_nr)`` constraint and gets StoreError.

Any SQLAlchemy failure is rolled back and re-raised as
:class:`~questboard.errors.StoreError`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeVar

from sqlalchemy import Engine, Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from questboard.database.engine import get_session
from questboard.database.models import GameSession, ParticipantStatus, SessionParticipant
from questboard.engine.admission import (
    AdmissionResult,
    Roster,
    RosterEntry,
    decide_join,
    decide_join_waiting_list,
    decide_leave,
    result_for,
)
from questboard.errors import QuestboardError, SessionNotFound, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Snapshot helpers
# ---------------------------------------------------------------------------
def locked_session_query(session_id: int) -> Select:
    return select(GameSession).where(GameSession.id == session_id).with_for_update()


def lock_game_session(session: Session, session_id: int) -> GameSession:
    """Fetch the session row with a write lock, or raise SessionNotFound."""
    game_session = session.scalar(locked_session_query(session_id))
    if game_session is None:
        raise SessionNotFound(session_id)
    return game_session


def load_roster(session: Session, game_session: GameSession) -> Roster:
    """Build the engine's view of *game_session* from its participant rows."""
    rows = session.scalars(
        select(SessionParticipant).where(SessionParticipant.session_id == game_session.id)
    ).all()
    return Roster(
        session_id=game_session.id,
        max_players=game_session.max_players,
        entries=tuple(
            RosterEntry(
                user_id=row.user_id,
                queue_nr=row.queue_nr,
                status=ParticipantStatus(row.status),
            )
            for row in rows
            if row.is_live
        ),
        highest_queue_nr=max((row.queue_nr for row in rows), default=0),
    )


def transact(engine: Engine, op: str, work: Callable[[Session], T]) -> T:
    """Run *work* in one transaction, translating store failures."""
    try:
        with get_session(engine) as session:
            return work(session)
    except QuestboardError as exc:
        logger.info("%s rejected: %s", op, exc.code)
        raise
    except SQLAlchemyError as exc:
        logger.exception("%s failed in the database", op)
        raise StoreError(f"Could not {op}: database error") from exc


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------
def _insert(session: Session, session_id: int, entry: RosterEntry) -> None:
    session.add(SessionParticipant(
        session_id=session_id,
        user_id=entry.user_id,
        queue_nr=entry.queue_nr,
        status=entry.status.value,
    ))
    session.flush()


def join(engine: Engine, session_id: int, user_id: str) -> AdmissionResult:
    """Take a seat in *session_id*.

    Raises SessionNotFound, AlreadyJoined, AlreadyWaiting or
    SessionFullError; on any of them nothing is written.
    """
    def work(session: Session) -> AdmissionResult:
        game_session = lock_game_session(session, session_id)
        entry = decide_join(load_roster(session, game_session), user_id)
        _insert(session, session_id, entry)
        return result_for(entry)

    result = transact(engine, "join session", work)
    logger.info(
        "User %s seated in session %d (queue #%d)", user_id, session_id, result.position
    )
    return result


def join_waiting_list(engine: Engine, session_id: int, user_id: str) -> AdmissionResult:
    """Queue for *session_id* behind every seat and earlier waiter."""
    def work(session: Session) -> AdmissionResult:
        game_session = lock_game_session(session, session_id)
        entry = decide_join_waiting_list(load_roster(session, game_session), user_id)
        _insert(session, session_id, entry)
        return result_for(entry)

    result = transact(engine, "join waiting list", work)
    logger.info(
        "User %s queued for session %d (queue #%d)", user_id, session_id, result.position
    )
    return result


def leave(engine: Engine, session_id: int, user_id: str) -> AdmissionResult:
    """Cancel the user's live record (seat or waiting-list place).

    The record is kept with ``cancelled_at`` set.  Waiting users are not
    promoted into the freed seat.
    """
    def work(session: Session) -> AdmissionResult:
        game_session = lock_game_session(session, session_id)
        entry = decide_leave(load_roster(session, game_session), user_id)
        row = session.scalar(
            select(SessionParticipant).where(
                SessionParticipant.session_id == session_id,
                SessionParticipant.user_id == user_id,
                SessionParticipant.cancelled_at.is_(None),
            )
        )
        row.cancelled_at = datetime.now(UTC)
        return result_for(entry, cancelled=True)

    result = transact(engine, "leave session", work)
    logger.info("User %s left session %d (queue #%d)", user_id, session_id, result.position)
    return result


# ---------------------------------------------------------------------------
# Read helpers
# ---------------------------------------------------------------------------
def get_roster(session: Session, session_id: int) -> Roster:
    """Unlocked roster snapshot for display and assertions."""
    game_session = session.get(GameSession, session_id)
    if game_session is None:
        raise SessionNotFound(session_id)
    return load_roster(session, game_session)
