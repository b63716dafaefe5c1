"""
repforge.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn repforge.api.main:app --reload --port 8000
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from repforge.api.deps import get_config, get_engine, get_hub  # noqa: E402
from repforge.api.routes.admin import router as admin_router  # noqa: E402
from repforge.api.routes.duels import router as duels_router  # noqa: E402
from repforge.api.routes.public import router as public_router  # noqa: E402
from repforge.api.routes.submissions import router as submissions_router  # noqa: E402
from repforge.database.engine import init_db  # noqa: E402
from repforge.services.duel_service import DuelArbiter  # noqa: E402
from repforge.services.duel_sweeper import DuelSweeper  # noqa: E402
from repforge.services.ledger import ProgressionLedger  # noqa: E402
from repforge.services.progression_service import ProgressionService  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Allowed CORS origins from ``CORS_ALLOW_ORIGINS`` (comma-separated)."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — tables, notification loop, duel sweeper."""
    engine = get_engine()
    config = get_config()
    init_db(engine)
    get_hub().bind_loop(asyncio.get_running_loop())

    ledger = ProgressionLedger.default(ProgressionService(engine, config, hub=get_hub()))
    arbiter = DuelArbiter(engine, config, ledger=ledger)
    sweeper = DuelSweeper(arbiter, config.duel_sweep_interval_seconds)
    sweeper.start()
    logger.info(
        "RepForge API started for %s — engine ready (%s)",
        config.community_name, engine.url.database,
    )
    yield
    sweeper.stop()
    logger.info("RepForge API shutting down")


app = FastAPI(
    title="RepForge API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(public_router, prefix="/api")
app.include_router(submissions_router, prefix="/api")
app.include_router(duels_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
