"""
questboard.services.user_service — Token Claims → User Row
===========================================================

Users sign in with the external identity provider; Questboard only keeps
the few fields it needs to show rosters and session owners.  The row is
created on the first authenticated request and refreshed afterwards.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from questboard.database.engine import get_session
from questboard.database.models import User

logger = logging.getLogger(__name__)


def display_name_from_claims(claims: dict) -> str:
    """Best human-readable name carried by the token."""
    metadata = claims.get("user_metadata") or {}
    for candidate in (
        claims.get("name"),
        metadata.get("full_name"),
        metadata.get("name"),
        claims.get("preferred_username"),
    ):
        if candidate:
            return str(candidate)[:100]
    email = claims.get("email")
    if email:
        return str(email).split("@", 1)[0][:100]
    return "Unknown"


def get_or_create_user(
    session: Session, user_id: str, display_name: str, email: str | None = None
) -> User:
    """Fetch or insert a User row, refreshing name and email."""
    user = session.get(User, user_id)
    if user is None:
        user = User(id=user_id, display_name=display_name, email=email)
        session.add(user)
        session.flush()
        logger.info("Registered user %s (%s)", user_id, display_name)
    else:
        user.display_name = display_name
        if email:
            user.email = email
    return user


def sync_user_from_claims(engine: Engine, claims: dict) -> User:
    """Ensure the token's subject has a User row and return it (detached)."""
    with get_session(engine) as session:
        user = get_or_create_user(
            session,
            str(claims["sub"]),
            display_name_from_claims(claims),
            claims.get("email"),
        )
    return user
