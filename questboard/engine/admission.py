"""
questboard.engine.admission — Seat / Waiting-List Decision Rule
================================================================

Pure decision logic.  No DB I/O inside the engine: the participation
service loads a :class:`Roster` snapshot inside a locked transaction,
asks this module what to insert, and writes the result.

Rules:
  * A user holds at most one live record per session, either active
    (seated) or waiting.
  * ``join`` seats the user while ``active < max_players``; otherwise it
    fails with :class:`SessionFullError`.
  * ``join_waiting_list`` always queues, with a queue number above
    ``max_players`` and above every number ever handed out.
  * Queue numbers are never reused, including those of cancelled rows,
    so the waiting list is strictly FIFO.
  * Nobody is promoted from the waiting list when a seat frees up.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from questboard.database.models import ParticipantStatus
from questboard.errors import (
    AlreadyJoined,
    AlreadyWaiting,
    NotAParticipant,
    SessionFullError,
)

__all__ = [
    "AdmissionResult",
    "AdmissionStatus",
    "Roster",
    "RosterEntry",
    "decide_join",
    "decide_join_waiting_list",
    "decide_leave",
    "result_for",
]


class AdmissionStatus(enum.StrEnum):
    SEATED = "seated"
    QUEUED = "queued"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class RosterEntry:
    """A live (non-cancelled) participant record."""

    user_id: str
    queue_nr: int
    status: ParticipantStatus


@dataclass(frozen=True, slots=True)
class Roster:
    """Snapshot of one session's participation state.

    ``entries`` holds live records only.  ``highest_queue_nr`` covers every
    record ever inserted, cancelled ones included.
    """

    session_id: int
    max_players: int
    entries: tuple[RosterEntry, ...] = ()
    highest_queue_nr: int = 0

    @property
    def active(self) -> list[RosterEntry]:
        return sorted(
            (e for e in self.entries if e.status == ParticipantStatus.ACTIVE),
            key=lambda e: e.queue_nr,
        )

    @property
    def waiting(self) -> list[RosterEntry]:
        return sorted(
            (e for e in self.entries if e.status == ParticipantStatus.WAITING),
            key=lambda e: e.queue_nr,
        )

    @property
    def free_seats(self) -> int:
        return max(self.max_players - len(self.active), 0)

    def find(self, user_id: str) -> RosterEntry | None:
        for entry in self.entries:
            if entry.user_id == user_id:
                return entry
        return None


@dataclass(frozen=True, slots=True)
class AdmissionResult:
    """Outcome of an admission operation."""

    status: AdmissionStatus
    position: int

    def to_dict(self) -> dict:
        return {"status": self.status.value, "position": self.position, "error": None}


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------
def _ensure_not_enrolled(roster: Roster, user_id: str) -> None:
    entry = roster.find(user_id)
    if entry is None:
        return
    if entry.status == ParticipantStatus.ACTIVE:
        raise AlreadyJoined()
    raise AlreadyWaiting()


def decide_join(roster: Roster, user_id: str) -> RosterEntry:
    """Return the record to insert for a seat request, or raise."""
    _ensure_not_enrolled(roster, user_id)
    if roster.free_seats <= 0:
        raise SessionFullError(roster.max_players)
    return RosterEntry(
        user_id=user_id,
        queue_nr=roster.highest_queue_nr + 1,
        status=ParticipantStatus.ACTIVE,
    )


def decide_join_waiting_list(roster: Roster, user_id: str) -> RosterEntry:
    """Return the record to insert for a waiting-list request, or raise.

    The queue number is placed after all seats (``> max_players``) even
    if seats are still free; a user who wants a free seat calls join.
    """
    _ensure_not_enrolled(roster, user_id)
    return RosterEntry(
        user_id=user_id,
        queue_nr=max(roster.highest_queue_nr, roster.max_players) + 1,
        status=ParticipantStatus.WAITING,
    )


def decide_leave(roster: Roster, user_id: str) -> RosterEntry:
    """Return the live record to cancel, or raise :class:`NotAParticipant`."""
    entry = roster.find(user_id)
    if entry is None:
        raise NotAParticipant()
    return entry


def result_for(entry: RosterEntry, *, cancelled: bool = False) -> AdmissionResult:
    if cancelled:
        status = AdmissionStatus.CANCELLED
    elif entry.status == ParticipantStatus.ACTIVE:
        status = AdmissionStatus.SEATED
    else:
        status = AdmissionStatus.QUEUED
    return AdmissionResult(status=status, position=entry.queue_nr)
