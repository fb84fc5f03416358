"""
questboard.api.auth — Identity of the calling user
====================================================

Sign-in itself happens at the identity provider; this router only
reports who the presented token belongs to.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from questboard.api.deps import get_current_user, get_engine
from questboard.database.engine import run_db
from questboard.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
async def me(claims: dict = Depends(get_current_user), engine=Depends(get_engine)):
    """Return the current user, registering them on first sight."""
    user = await run_db(user_service.sync_user_from_claims, engine, claims)
    return {
        "id": user.id,
        "display_name": user.display_name,
        "email": user.email,
    }
