"""
tests/test_participation_service.py — Join / Waiting List / Leave
==================================================================
Transactional admission operations against an in-memory SQLite store.
"""

from __future__ import annotations

import threading
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from questboard.database.models import Base, ParticipantStatus, SessionParticipant
from questboard.database.seed import seed_game_systems
from questboard.engine.admission import AdmissionResult, AdmissionStatus
from questboard.errors import (
    AlreadyJoined,
    AlreadyWaiting,
    NotAParticipant,
    SessionFullError,
    SessionNotFound,
    StoreError,
)
from questboard.services import participation_service as ps
from conftest import make_game_session, make_user


@pytest.fixture
def players(db_engine):
    return [make_user(db_engine, name) for name in ("alice", "bob", "carol", "dave")]


@pytest.fixture
def table(db_engine, players):
    """A session with two seats."""
    return make_game_session(db_engine, max_players=2)


def _records(engine, session_id) -> list[SessionParticipant]:
    with Session(engine) as session:
        return list(session.scalars(
            select(SessionParticipant)
            .where(SessionParticipant.session_id == session_id)
            .order_by(SessionParticipant.queue_nr)
        ).all())


def _roster(engine, session_id):
    with Session(engine) as session:
        return ps.get_roster(session, session_id)


class TestJoin:
    def test_seat_two_of_two(self, db_engine, table):
        assert ps.join(db_engine, table.id, "alice") == AdmissionResult(AdmissionStatus.SEATED, 1)
        assert ps.join(db_engine, table.id, "bob") == AdmissionResult(AdmissionStatus.SEATED, 2)

        roster = _roster(db_engine, table.id)
        assert [e.user_id for e in roster.active] == ["alice", "bob"]
        assert roster.waiting == []

    def test_third_join_full_then_queued(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        ps.join(db_engine, table.id, "bob")

        with pytest.raises(SessionFullError):
            ps.join(db_engine, table.id, "carol")
        assert len(_records(db_engine, table.id)) == 2

        result = ps.join_waiting_list(db_engine, table.id, "carol")
        assert result.status == AdmissionStatus.QUEUED
        assert result.position == 3

    def test_double_join_leaves_roster_unchanged(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        before = _roster(db_engine, table.id)

        with pytest.raises(AlreadyJoined):
            ps.join(db_engine, table.id, "alice")

        assert _roster(db_engine, table.id) == before

    def test_join_while_waiting(self, db_engine, table):
        ps.join_waiting_list(db_engine, table.id, "alice")
        with pytest.raises(AlreadyWaiting):
            ps.join(db_engine, table.id, "alice")

    def test_unknown_session(self, db_engine, players):
        with pytest.raises(SessionNotFound) as info:
            ps.join(db_engine, 9999, "alice")
        assert info.value.http_status == 404

    def test_capacity_never_exceeded(self, db_engine, table, players):
        for user in players:
            try:
                ps.join(db_engine, table.id, user)
            except SessionFullError:
                pass
        assert len(_roster(db_engine, table.id).active) <= 2


class TestWaitingList:
    def test_position_is_after_all_seats(self, db_engine, players):
        gs = make_game_session(db_engine, max_players=4)
        ps.join(db_engine, gs.id, "alice")

        result = ps.join_waiting_list(db_engine, gs.id, "bob")
        assert result.position == 5

    def test_fifo(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        ps.join(db_engine, table.id, "bob")
        first = ps.join_waiting_list(db_engine, table.id, "carol")
        second = ps.join_waiting_list(db_engine, table.id, "dave")

        assert first.position < second.position
        assert [e.user_id for e in _roster(db_engine, table.id).waiting] == ["carol", "dave"]

    def test_user_is_never_both_active_and_waiting(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        with pytest.raises(AlreadyJoined):
            ps.join_waiting_list(db_engine, table.id, "alice")

        roster = _roster(db_engine, table.id)
        active = {e.user_id for e in roster.active}
        waiting = {e.user_id for e in roster.waiting}
        assert active.isdisjoint(waiting)


class TestLeave:
    def test_leave_cancels_and_keeps_waiting_list(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        ps.join(db_engine, table.id, "bob")
        ps.join_waiting_list(db_engine, table.id, "carol")

        result = ps.leave(db_engine, table.id, "alice")
        assert result == AdmissionResult(AdmissionStatus.CANCELLED, 1)

        alice = next(r for r in _records(db_engine, table.id) if r.user_id == "alice")
        assert alice.cancelled_at is not None
        assert not alice.is_live
        assert alice.status == ParticipantStatus.ACTIVE.value

        roster = _roster(db_engine, table.id)
        assert [e.user_id for e in roster.active] == ["bob"]
        assert [e.user_id for e in roster.waiting] == ["carol"]

    def test_leave_frees_a_seat(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        ps.join(db_engine, table.id, "bob")
        ps.leave(db_engine, table.id, "bob")

        assert ps.join(db_engine, table.id, "carol").position == 3

    def test_leave_waiting_list(self, db_engine, table):
        ps.join_waiting_list(db_engine, table.id, "alice")
        assert ps.leave(db_engine, table.id, "alice").status == AdmissionStatus.CANCELLED
        assert _roster(db_engine, table.id).waiting == []

    def test_rejoin_after_leave_gets_new_number(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        ps.leave(db_engine, table.id, "alice")

        result = ps.join(db_engine, table.id, "alice")
        assert result.position == 2
        assert len(_records(db_engine, table.id)) == 2

    def test_not_a_participant(self, db_engine, table):
        with pytest.raises(NotAParticipant):
            ps.leave(db_engine, table.id, "alice")

    def test_leave_twice(self, db_engine, table):
        ps.join(db_engine, table.id, "alice")
        ps.leave(db_engine, table.id, "alice")
        with pytest.raises(NotAParticipant):
            ps.leave(db_engine, table.id, "alice")


class TestStoreFailures:
    def test_database_error_is_wrapped(self, db_engine, table):
        boom = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(ps, "_insert", side_effect=boom):
            with pytest.raises(StoreError) as info:
                ps.join(db_engine, table.id, "alice")

        assert info.value.__cause__ is boom
        assert info.value.http_status == 500
        assert _records(db_engine, table.id) == []


class TestConcurrentJoins:
    def test_lock_query_is_select_for_update_on_postgres(self):
        sql = str(ps.locked_session_query(7).compile(dialect=postgresql.dialect()))
        assert sql.rstrip().endswith("FOR UPDATE")

    @pytest.fixture
    def file_engine(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False, "timeout": 10},
        )
        Base.metadata.create_all(engine)
        seed_game_systems(engine)
        yield engine
        engine.dispose()

    def test_last_seat_race_seats_only_one(self, file_engine):
        for user in ("alice", "bob"):
            make_user(file_engine, user)
        gs = make_game_session(file_engine, max_players=1)

        # Both joiners decide against the same roster with one free seat
        barrier = threading.Barrier(2, timeout=10)
        decide = ps.decide_join

        def decide_then_wait(roster, user_id):
            entry = decide(roster, user_id)
            barrier.wait()
            return entry

        outcomes: dict[str, object] = {}

        def attempt(user_id: str) -> None:
            try:
                outcomes[user_id] = ps.join(file_engine, gs.id, user_id).status
            except (StoreError, SessionFullError) as exc:
                outcomes[user_id] = type(exc)

        with patch.object(ps, "decide_join", side_effect=decide_then_wait):
            threads = [threading.Thread(target=attempt, args=(u,)) for u in ("alice", "bob")]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=30)

        assert sorted(outcomes) == ["alice", "bob"]
        assert set(outcomes.values()) == {AdmissionStatus.SEATED, StoreError}
        roster = _roster(file_engine, gs.id)
        assert len(roster.active) == 1
        assert roster.active[0].user_id in outcomes
