"""
repforge.api.routes.duels — Duel endpoints
===========================================

The challenger / acting user is always the token subject.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from repforge.api.deps import get_arbiter, get_current_user
from repforge.services.duel_service import (
    ChallengeCooldownError,
    DuelArbiter,
    DuelError,
    DuelExpiredError,
    DuelNotFoundError,
    DuelPermissionError,
    DuelStorageError,
    DuplicateDuelError,
    InvalidChallengeError,
    InvalidDuelTransitionError,
)

router = APIRouter(tags=["duels"])


class ChallengeIn(BaseModel):
    opponent_id: int
    opponent_is_bot: bool = False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _http_error(exc: DuelError) -> HTTPException:
    """Translate a rejected duel operation into an HTTP error."""
    if isinstance(exc, DuelNotFoundError):
        return HTTPException(404, str(exc))
    if isinstance(exc, DuelPermissionError):
        return HTTPException(403, str(exc))
    if isinstance(exc, ChallengeCooldownError):
        return HTTPException(429, str(exc), headers={"Retry-After": str(exc.retry_after)})
    if isinstance(exc, InvalidChallengeError):
        return HTTPException(400, str(exc))
    if isinstance(exc, (DuplicateDuelError, DuelExpiredError, InvalidDuelTransitionError)):
        return HTTPException(409, str(exc))
    if isinstance(exc, DuelStorageError):
        return HTTPException(503, str(exc))
    return HTTPException(400, str(exc))


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
@router.post("/duels", status_code=201)
def create_challenge(
    body: ChallengeIn,
    user: dict = Depends(get_current_user),
    arbiter: DuelArbiter = Depends(get_arbiter),
):
    try:
        snapshot = arbiter.challenge(
            user["user_id"], body.opponent_id, opponent_is_bot=body.opponent_is_bot,
        )
    except DuelError as exc:
        raise _http_error(exc) from exc
    return snapshot.to_dict()


@router.post("/duels/{duel_id}/accept")
def accept_duel(
    duel_id: int,
    user: dict = Depends(get_current_user),
    arbiter: DuelArbiter = Depends(get_arbiter),
):
    try:
        return arbiter.accept(duel_id, user["user_id"]).to_dict()
    except DuelError as exc:
        raise _http_error(exc) from exc


@router.post("/duels/{duel_id}/decline")
def decline_duel(
    duel_id: int,
    user: dict = Depends(get_current_user),
    arbiter: DuelArbiter = Depends(get_arbiter),
):
    try:
        return arbiter.decline(duel_id, user["user_id"]).to_dict()
    except DuelError as exc:
        raise _http_error(exc) from exc


@router.post("/duels/{duel_id}/cancel")
def cancel_duel(
    duel_id: int,
    user: dict = Depends(get_current_user),
    arbiter: DuelArbiter = Depends(get_arbiter),
):
    try:
        return arbiter.cancel(duel_id, user["user_id"]).to_dict()
    except DuelError as exc:
        raise _http_error(exc) from exc


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@router.get("/duels/{duel_id}")
def get_duel(duel_id: int, arbiter: DuelArbiter = Depends(get_arbiter)):
    try:
        return arbiter.status(duel_id).to_dict()
    except DuelError as exc:
        raise _http_error(exc) from exc


@router.get("/users/{user_id}/duels")
def get_duel_history(
    user_id: int,
    limit: int | None = Query(None, ge=1, le=100),
    arbiter: DuelArbiter = Depends(get_arbiter),
):
    try:
        current = arbiter.open_duel(user_id)
        history = arbiter.history(user_id, limit=limit)
    except DuelError as exc:
        raise _http_error(exc) from exc
    return {
        "current": current.to_dict() if current else None,
        "history": [s.to_dict() for s in history],
    }


@router.get("/users/{user_id}/duel-record")
def get_duel_record(user_id: int, arbiter: DuelArbiter = Depends(get_arbiter)):
    try:
        return arbiter.record(user_id).to_dict()
    except DuelError as exc:
        raise _http_error(exc) from exc
