"""
Questboard — Tabletop RPG Session Finder
=========================================
Browse upcoming role-playing game sessions, publish one-shots, campaigns
and proposed sessions, and take a seat at the table (or a place on its
waiting list).

Package layout::

    questboard/
    ├── __main__.py        # CLI: init-db, serve
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Game system catalogue, timezones
    ├── errors.py          # Typed domain errors → HTTP status
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (users, sessions, participants …)
    │   └── seed.py        # Game system seeder
    ├── engine/
    │   ├── admission.py   # Seat / waiting-list decision rule (pure)
    │   └── locations.py   # OnlineLocation | PhysicalLocation variant
    ├── services/
    │   ├── participation_service.py  # join / waiting list / leave
    │   ├── session_service.py        # browse, create, edit, delete
    │   └── user_service.py           # token claims → User row
    └── api/
        ├── main.py        # FastAPI app
        ├── auth.py        # GET /auth/me
        └── routes/        # Public + authenticated REST endpoints
"""

__version__ = "0.1.0"
