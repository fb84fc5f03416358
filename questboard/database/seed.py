"""
questboard.database.seed — Game System Seeder
==============================================

Idempotent — only inserts systems whose id doesn't exist yet.  Names and
descriptions edited directly in the database are never overwritten.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from questboard.constants import GAME_SYSTEMS
from questboard.database.models import GameSystem

logger = logging.getLogger(__name__)


def seed_game_systems(engine: Engine) -> int:
    """Insert missing entries from :data:`GAME_SYSTEMS`; return how many."""
    session = Session(engine)
    inserted = 0
    try:
        for system_id, name, description in GAME_SYSTEMS:
            if session.get(GameSystem, system_id) is None:
                session.add(GameSystem(id=system_id, name=name, description=description))
                inserted += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted:
        logger.info("Seeded %d game systems.", inserted)
    return inserted
