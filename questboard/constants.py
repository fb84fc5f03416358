"""
questboard.constants — Shared Constants
========================================

Single source of truth for the game system catalogue and the timezones
offered when scheduling.  Import from here instead of duplicating in
services, seeders, and routes.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Game systems seeded into the ``game_systems`` table: (id, name, description)
# ---------------------------------------------------------------------------
GAME_SYSTEMS: list[tuple[str, str, str]] = [
    ("dnd-5e", "D&D 5e", "Dungeons & Dragons 5th Edition"),
    ("pathfinder-2e", "Pathfinder 2e", "Pathfinder Second Edition"),
    ("call-of-cthulhu", "Call of Cthulhu", "Horror investigation RPG"),
    ("vampire-masquerade", "Vampire: The Masquerade", "Gothic punk vampire RPG"),
    ("cyberpunk-red", "Cyberpunk Red", "Cyberpunk dystopian RPG"),
    ("blades-in-dark", "Blades in the Dark", "Heist-focused fantasy RPG"),
    ("monster-of-week", "Monster of the Week", "Supernatural investigation RPG"),
    ("fate-core", "FATE Core", "Narrative-focused universal RPG"),
    ("savage-worlds", "Savage Worlds", "Fast, furious, fun universal RPG"),
    ("other", "Other", "Custom or other game system"),
]

TIMEZONES: tuple[str, ...] = (
    "Europe/Stockholm",
    "Europe/London",
    "Europe/Berlin",
    "Europe/Paris",
    "America/New_York",
    "America/Chicago",
    "America/Denver",
    "America/Los_Angeles",
    "America/Toronto",
    "America/Vancouver",
    "Asia/Tokyo",
    "Asia/Shanghai",
    "Australia/Sydney",
    "Australia/Melbourne",
    "UTC",
)

# Placeholder rendered for the date/time of sessions not yet scheduled.
TBD = "TBD"
