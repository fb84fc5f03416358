"""
questboard.api.routes.public — Read-only reference data
=========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from questboard.api.deps import get_session
from questboard.constants import TIMEZONES
from questboard.services import session_service

router = APIRouter(tags=["public"])


@router.get("/game-systems")
def get_game_systems(session: Session = Depends(get_session)):
    """All known game systems, alphabetically."""
    return {
        "game_systems": [
            {"id": gs.id, "name": gs.name, "description": gs.description}
            for gs in session_service.list_game_systems(session)
        ],
    }


@router.get("/timezones")
def get_timezones():
    return {"timezones": list(TIMEZONES)}
