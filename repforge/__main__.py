"""
repforge.__main__ — Entry point for ``python -m repforge``
==========================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Load config.yaml and create tables.
3. Serve the FastAPI app with uvicorn (the app's lifespan starts the
   duel sweeper).

Run with::

    python -m repforge --port 8000
"""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("repforge")


def main() -> None:
    parser = argparse.ArgumentParser(prog="repforge", description="Run the RepForge API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    load_dotenv()

    from repforge.config import load_config
    from repforge.database.engine import create_db_engine, init_db

    cfg = load_config(os.getenv("REPFORGE_CONFIG", "config.yaml"))
    logger.info("Config loaded — Community: %s (%s)", cfg.community_name, cfg.timezone)
    init_db(create_db_engine())

    import uvicorn

    uvicorn.run("repforge.api.main:app", host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
