"""
questboard.api.routes.sessions — Session browsing, management & joining
=========================================================================
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from questboard.api.deps import get_config, get_current_user, get_engine, get_session
from questboard.config import QuestboardConfig
from questboard.constants import TBD
from questboard.database.engine import run_db
from questboard.database.models import (
    CharacterCreation,
    GameSession,
    SessionState,
    SessionType,
    User,
)
from questboard.services import participation_service, session_service, user_service
from questboard.services.session_service import SessionDetail, SessionFilters

router = APIRouter(tags=["sessions"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class TimeSuggestionIn(BaseModel):
    date: dt.date
    time: dt.time


def _check_image_url(value: str | None) -> str | None:
    if value and not value.startswith(("http://", "https://")):
        raise ValueError("image must be an http(s) URL")
    return value or None


class SessionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=2000)
    game_system_id: str = Field(min_length=1, max_length=50)
    state: SessionState = SessionState.PUBLISHED
    session_type: SessionType = SessionType.ONE_TIME
    date: dt.date | None = None
    time: dt.time | None = None
    duration: int = Field(ge=30, le=480)  # minutes
    timezone: str | None = Field(default=None, min_length=1, max_length=50)
    planned_sessions: int | None = Field(default=None, ge=1, le=52)
    time_suggestions: list[TimeSuggestionIn] = Field(default_factory=list)
    decision_date: dt.date | None = None
    max_players: int = Field(ge=1, le=20)
    is_online: bool = False
    location: dict[str, Any] | None = None
    image: str | None = None
    character_creation: CharacterCreation = CharacterCreation.PREGENERATED

    @field_validator("image")
    @classmethod
    def _image_is_url(cls, value: str | None) -> str | None:
        return _check_image_url(value)

    @model_validator(mode="after")
    def _check_schedule(self) -> SessionCreate:
        if self.state == SessionState.PUBLISHED:
            if self.date is None or self.time is None:
                raise ValueError("date and time are required for published sessions")
        else:
            if not self.time_suggestions:
                raise ValueError("at least one time suggestion is required")
            if self.decision_date is None:
                raise ValueError("decision_date is required for suggested sessions")
        if self.session_type == SessionType.RECURRING and (self.planned_sessions or 0) < 2:
            raise ValueError("recurring sessions need planned_sessions (2-52)")
        return self


class SessionUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=2000)
    game_system_id: str | None = Field(default=None, min_length=1, max_length=50)
    state: SessionState | None = None
    session_type: SessionType | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    duration: int | None = Field(default=None, ge=30, le=480)
    timezone: str | None = Field(default=None, min_length=1, max_length=50)
    planned_sessions: int | None = Field(default=None, ge=1, le=52)
    time_suggestions: list[TimeSuggestionIn] | None = None
    decision_date: dt.date | None = None
    max_players: int | None = Field(default=None, ge=1, le=20)
    is_online: bool | None = None
    location: dict[str, Any] | None = None
    image: str | None = None
    character_creation: CharacterCreation | None = None

    @field_validator("image")
    @classmethod
    def _image_is_url(cls, value: str | None) -> str | None:
        return _check_image_url(value)


# Request field → column name, where they differ
_RENAMED = {"time": "start_time", "image": "image_url"}

# Fields an update may explicitly clear with null
_CLEARABLE = frozenset({"date", "time", "decision_date", "planned_sessions", "location", "image"})


def _service_fields(data: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in data.items():
        if key == "time_suggestions" and value is not None:
            value = [(s["date"], s["time"]) for s in value]
        elif isinstance(value, (SessionState, SessionType, CharacterCreation)):
            value = value.value
        fields[_RENAMED.get(key, key)] = value
    return fields


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------
def _fmt_date(value: dt.date | None) -> str:
    return value.isoformat() if value else TBD


def _fmt_time(value: dt.time | None) -> str:
    return value.strftime("%H:%M") if value else TBD


def _user_dict(u: User) -> dict:
    return {"id": u.id, "display_name": u.display_name}


def _session_dict(gs: GameSession, *, current_players: int, waiting_list_count: int) -> dict:
    return {
        "id": gs.id,
        "title": gs.title,
        "description": gs.description,
        "game_system": {"id": gs.game_system_id, "name": gs.game_system.name},
        "date": _fmt_date(gs.date),
        "time": _fmt_time(gs.start_time),
        "end_time": _fmt_time(gs.end_time),
        "duration": gs.duration,
        "timezone": gs.timezone,
        "state": gs.state,
        "session_type": gs.session_type,
        "planned_sessions": gs.planned_sessions,
        "decision_date": gs.decision_date.isoformat() if gs.decision_date else None,
        "max_players": gs.max_players,
        "current_players": current_players,
        "waiting_list_count": waiting_list_count,
        "is_full": current_players >= gs.max_players,
        "gm_id": gs.gm_id,
        "is_online": gs.is_online,
        "location": gs.location,
        "image": gs.image_url,
        "character_creation": gs.character_creation,
        "created_at": gs.created_at.isoformat() if gs.created_at else None,
        "updated_at": gs.updated_at.isoformat() if gs.updated_at else None,
    }


def _detail_dict(detail: SessionDetail) -> dict:
    gs = detail.game_session
    return {
        **_session_dict(
            gs,
            current_players=detail.current_players,
            waiting_list_count=detail.waiting_list_count,
        ),
        "gm": _user_dict(gs.gm) if gs.gm else None,
        "players": [_user_dict(u) for u in detail.players],
        "waiting_list": [_user_dict(u) for u in detail.waiting_list],
        "time_suggestions": [
            {
                "id": s.id,
                "date": s.date.isoformat(),
                "time": s.time.strftime("%H:%M"),
                "votes": s.votes,
            }
            for s in gs.time_suggestions
        ],
    }


# ---------------------------------------------------------------------------
# GET /sessions
# ---------------------------------------------------------------------------
@router.get("/sessions")
def list_sessions(
    game_system: str | None = Query(None),
    is_online: bool | None = Query(None),
    city: str | None = Query(None),
    state: SessionState | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=100),
    session: Session = Depends(get_session),
    cfg: QuestboardConfig = Depends(get_config),
):
    """Browse sessions, soonest first; proposed sessions without a date last."""
    filters = SessionFilters(
        game_system=game_system,
        is_online=is_online,
        city=city,
        state=state.value if state else None,
    )
    summaries = session_service.list_sessions(session, filters)

    size = page_size or cfg.list_page_size
    offset = (page - 1) * size
    return {
        "total": len(summaries),
        "page": page,
        "page_size": size,
        "sessions": [
            _session_dict(
                s.game_session,
                current_players=s.current_players,
                waiting_list_count=s.waiting_list_count,
            )
            for s in summaries[offset:offset + size]
        ],
    }


# ---------------------------------------------------------------------------
# GET /sessions/{id}
# ---------------------------------------------------------------------------
@router.get("/sessions/{session_id}")
def get_session_detail(session_id: int, session: Session = Depends(get_session)):
    return _detail_dict(session_service.get_session_detail(session, session_id))


# ---------------------------------------------------------------------------
# POST / PUT / DELETE /sessions
# ---------------------------------------------------------------------------
@router.post("/sessions", status_code=201)
def create_session(
    body: SessionCreate,
    claims: dict = Depends(get_current_user),
    engine=Depends(get_engine),
    session: Session = Depends(get_session),
    cfg: QuestboardConfig = Depends(get_config),
):
    gm = user_service.sync_user_from_claims(engine, claims)
    fields = _service_fields(body.model_dump())
    fields["timezone"] = fields["timezone"] or cfg.default_timezone
    created = session_service.create_session(engine, gm_id=gm.id, **fields)
    return _detail_dict(session_service.get_session_detail(session, created.id))


@router.put("/sessions/{session_id}")
def update_session(
    session_id: int,
    body: SessionUpdate,
    claims: dict = Depends(get_current_user),
    engine=Depends(get_engine),
    session: Session = Depends(get_session),
):
    session_service.update_session(
        engine,
        session_id,
        actor_id=str(claims["sub"]),
        changes=_service_fields({
            key: value
            for key, value in body.model_dump(exclude_unset=True).items()
            if value is not None or key in _CLEARABLE
        }),
    )
    return _detail_dict(session_service.get_session_detail(session, session_id))


@router.delete("/sessions/{session_id}")
def delete_session(
    session_id: int,
    claims: dict = Depends(get_current_user),
    engine=Depends(get_engine),
):
    session_service.delete_session(engine, session_id, actor_id=str(claims["sub"]))
    return {"success": True}


# ---------------------------------------------------------------------------
# Participation
# ---------------------------------------------------------------------------
@router.post("/sessions/{session_id}/join")
async def join_session(
    session_id: int,
    claims: dict = Depends(get_current_user),
    engine=Depends(get_engine),
):
    """Take a free seat; 400 ``session_full`` points to the waiting list."""
    user = await run_db(user_service.sync_user_from_claims, engine, claims)
    result = await run_db(participation_service.join, engine, session_id, user.id)
    return result.to_dict()


@router.post("/sessions/{session_id}/waiting-list")
async def join_waiting_list(
    session_id: int,
    claims: dict = Depends(get_current_user),
    engine=Depends(get_engine),
):
    user = await run_db(user_service.sync_user_from_claims, engine, claims)
    result = await run_db(participation_service.join_waiting_list, engine, session_id, user.id)
    return result.to_dict()


@router.delete("/sessions/{session_id}/participation")
async def leave_session(
    session_id: int,
    claims: dict = Depends(get_current_user),
    engine=Depends(get_engine),
):
    result = await run_db(participation_service.leave, engine, session_id, str(claims["sub"]))
    return result.to_dict()
