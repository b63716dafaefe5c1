"""
repforge.api.routes.admin — Admin endpoints (JWT‑protected)
============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from repforge.api.deps import (
    get_arbiter,
    get_config,
    get_current_admin,
    get_engine,
    get_progression_service,
    get_submission_service,
)
from repforge.config import ForgeConfig
from repforge.services import admin_service
from repforge.services.admin_service import AdminAuthorizationError
from repforge.services.duel_service import DuelArbiter, DuelStorageError
from repforge.services.progression_service import ProgressionService
from repforge.services.submission_service import SubmissionService

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class AdjustIn(BaseModel):
    xp_delta: int = 0
    warrior_delta: int = 0
    mage_delta: int = 0
    templar_delta: int = 0
    reason: str = Field("", max_length=500)


class ResetIn(BaseModel):
    reason: str = Field("", max_length=500)


class RetryAwardIn(BaseModel):
    xp: int = Field(ge=0)
    warrior: int = Field(0, ge=0)
    mage: int = Field(0, ge=0)


# ---------------------------------------------------------------------------
# Progression overrides
# ---------------------------------------------------------------------------
@router.post("/users/{user_id}/adjust")
def adjust_user(
    user_id: int,
    body: AdjustIn,
    admin: dict = Depends(get_current_admin),
    config: ForgeConfig = Depends(get_config),
    progression: ProgressionService = Depends(get_progression_service),
):
    try:
        result = admin_service.adjust_progression(
            progression,
            config,
            actor_id=admin["user_id"],
            user_id=user_id,
            xp_delta=body.xp_delta,
            warrior_delta=body.warrior_delta,
            mage_delta=body.mage_delta,
            templar_delta=body.templar_delta,
            reason=body.reason,
        )
    except AdminAuthorizationError as exc:
        raise HTTPException(403, str(exc)) from exc
    return {
        "user_id": user_id,
        "before": result.before.to_dict(),
        "after": result.after.to_dict(),
        "leveled_up": result.leveled_up,
        "new_level": result.level_change.new_level,
        "archetype_changed": result.archetype_changed,
        "archetype": result.archetype_change.new.archetype.value,
    }


@router.post("/users/{user_id}/reset")
def reset_user(
    user_id: int,
    body: ResetIn,
    admin: dict = Depends(get_current_admin),
    config: ForgeConfig = Depends(get_config),
    engine: Engine = Depends(get_engine),
):
    try:
        summary = admin_service.reset_user(
            engine, config, actor_id=admin["user_id"], user_id=user_id, reason=body.reason,
        )
    except AdminAuthorizationError as exc:
        raise HTTPException(403, str(exc)) from exc
    if summary is None:
        raise HTTPException(404, "User not found")
    return summary.to_dict()


@router.post("/users/{user_id}/retry-award")
def retry_award(
    user_id: int,
    body: RetryAwardIn,
    admin: dict = Depends(get_current_admin),
    config: ForgeConfig = Depends(get_config),
    service: SubmissionService = Depends(get_submission_service),
):
    """Re-run the award chain for a submission whose award failed."""
    if not config.is_admin(admin["user_id"]):
        raise HTTPException(403, "Not admin")
    result = service.retry_award(
        user_id, body.xp, {"warrior": body.warrior, "mage": body.mage},
    )
    return result.to_dict()


# ---------------------------------------------------------------------------
# Duels
# ---------------------------------------------------------------------------
@router.post("/duels/sweep")
def sweep_duels(
    admin: dict = Depends(get_current_admin),
    arbiter: DuelArbiter = Depends(get_arbiter),
):
    try:
        return arbiter.sweep().to_dict()
    except DuelStorageError as exc:
        raise HTTPException(503, str(exc)) from exc


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------
@router.get("/audit")
def get_audit(
    limit: int = Query(50, ge=1, le=500),
    user_id: int | None = Query(None),
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    return admin_service.list_audit(engine, limit=limit, target_id=user_id)
