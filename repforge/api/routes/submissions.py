"""
repforge.api.routes.submissions — Stat submission endpoint
===========================================================
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from repforge.api.deps import get_current_user, get_submission_service
from repforge.services.submission_service import SubmissionService

router = APIRouter(tags=["submissions"])


class SubmissionIn(BaseModel):
    user_id: int
    stats: dict[str, Any] = Field(default_factory=dict)
    day: date | str | None = None
    username: str | None = None


@router.post("/submissions")
def submit_stats(
    body: SubmissionIn,
    user: dict = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """Normalize, persist, and award one stat submission.

    An empty stat set is a 400.  A failed award still answers 200 with
    ``success: false`` and ``stats_persisted`` so the client can retry.
    """
    if user["user_id"] != body.user_id and not user.get("is_admin"):
        raise HTTPException(403, "You can only submit your own stats")

    result = service.submit(
        body.user_id,
        body.stats,
        day=body.day,
        username=body.username or user.get("username"),
    )
    if not result.success and not result.validated_stats:
        raise HTTPException(400, result.error or "No valid stats provided")
    return result.to_dict()
