"""
questboard.errors — Typed Domain Errors
========================================

Every precondition violation is raised as its own exception type so the
HTTP layer can render a precise message ("already joined" vs "session
full") instead of a generic failure.  Each class carries the HTTP status
and a stable machine-readable ``code``; a single FastAPI exception handler
in :mod:`questboard.api.main` turns them into responses.
"""

from __future__ import annotations


class QuestboardError(Exception):
    """Base class for all errors surfaced to API callers."""

    code = "error"
    http_status = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "status": "error",
            "position": None,
            "error": self.message,
            "code": self.code,
        }


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
class SessionNotFound(QuestboardError):
    code = "session_not_found"
    http_status = 404

    def __init__(self, session_id: int) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class GameSystemNotFound(QuestboardError):
    code = "game_system_not_found"

    def __init__(self, game_system_id: str) -> None:
        super().__init__(f"Unknown game system: {game_system_id!r}")
        self.game_system_id = game_system_id


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------
class AlreadyJoined(QuestboardError):
    code = "already_joined"

    def __init__(self) -> None:
        super().__init__("You are already in this session")


class AlreadyWaiting(QuestboardError):
    code = "already_waiting"

    def __init__(self) -> None:
        super().__init__("You are already on the waiting list")


class SessionFullError(QuestboardError):
    code = "session_full"

    def __init__(self, max_players: int) -> None:
        super().__init__(
            f"Session is full ({max_players} players). Join the waiting list instead."
        )
        self.max_players = max_players


class NotAParticipant(QuestboardError):
    code = "not_a_participant"

    def __init__(self) -> None:
        super().__init__("You are not a participant of this session")


# ---------------------------------------------------------------------------
# Session management
# ---------------------------------------------------------------------------
class NotSessionOwner(QuestboardError):
    code = "not_session_owner"
    http_status = 403

    def __init__(self) -> None:
        super().__init__("Only the session's GM can change it")


class CapacityBelowRoster(QuestboardError):
    code = "capacity_below_roster"

    def __init__(self, max_players: int, active: int) -> None:
        super().__init__(
            f"Cannot lower max players to {max_players}: "
            f"{active} players are already seated"
        )
        self.max_players = max_players
        self.active = active


class InvalidSessionData(QuestboardError):
    """Field combination that the request schema alone cannot rule out."""

    code = "invalid_session"


class InvalidLocation(InvalidSessionData):
    code = "invalid_location"


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
class StoreError(QuestboardError):
    """Wraps an underlying database failure (chained via ``raise … from``)."""

    code = "store_error"
    http_status = 500

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message)
