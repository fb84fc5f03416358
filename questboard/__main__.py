"""
questboard.__main__ — Entry point for ``python -m questboard``
================================================================

Commands:

* ``init-db`` — create the tables and seed the game-system catalogue.
* ``serve``   — run the HTTP API under uvicorn.

Run with::

    python -m questboard init-db
    python -m questboard serve --reload
"""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from questboard.config import load_config
from questboard.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("questboard")


def _init_db(args: argparse.Namespace) -> None:
    engine = create_db_engine()
    init_db(engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))


def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    cfg = load_config(args.config)
    port = args.port or cfg.api_port
    logger.info("Serving Questboard API on %s:%d", args.host, port)
    uvicorn.run("questboard.api.main:app", host=args.host, port=port, reload=args.reload)


def main(argv: list[str] | None = None) -> None:
    """Parse the command line and dispatch."""
    load_dotenv()

    parser = argparse.ArgumentParser(prog="questboard", description="Questboard session finder")
    parser.add_argument("--config", default="config.yaml", help="path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create tables and seed game systems").set_defaults(func=_init_db)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=_serve)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
