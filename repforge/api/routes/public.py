"""
repforge.api.routes.public — Read-only public endpoints
========================================================
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from repforge.api.deps import get_progression_service
from repforge.services.progression_service import ProgressionService

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# GET /levels
# ---------------------------------------------------------------------------
@router.get("/levels")
def get_levels(progression: ProgressionService = Depends(get_progression_service)):
    """The level curve: threshold XP and class title per level."""
    table = progression.level_table
    return [
        {
            "level": tier.level,
            "xp": tier.xp,
            "class_name": tier.class_name,
            "class_code": table.class_code(tier.class_name),
        }
        for tier in table
    ]


# ---------------------------------------------------------------------------
# GET /users/{user_id}/profile
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/profile")
def get_profile(
    user_id: int,
    progression: ProgressionService = Depends(get_progression_service),
):
    profile = progression.get_profile(user_id)
    if profile is None:
        raise HTTPException(404, "User not found")
    return profile.to_dict()


@router.get("/users/{user_id}/archetype-history")
def get_archetype_history(
    user_id: int,
    limit: int = Query(20, ge=1, le=100),
    progression: ProgressionService = Depends(get_progression_service),
):
    return progression.archetype_history(user_id, limit=limit)


# ---------------------------------------------------------------------------
# Per-day stats
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/days")
def list_days(
    user_id: int,
    limit: int = Query(30, ge=1, le=366),
    progression: ProgressionService = Depends(get_progression_service),
):
    return [d.isoformat() for d in progression.list_submission_days(user_id, limit=limit)]


@router.get("/users/{user_id}/days/{day}")
def get_day(
    user_id: int,
    day: date,
    progression: ProgressionService = Depends(get_progression_service),
):
    stats = progression.get_day_stats(user_id, day)
    if not stats:
        raise HTTPException(404, "No stats recorded for that day")
    return {"user_id": user_id, "day": day.isoformat(), "stats": stats}
