"""
repforge.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from repforge.config import ForgeConfig, load_config
from repforge.database.engine import create_db_engine
from repforge.services.duel_service import DuelArbiter
from repforge.services.ledger import ProgressionLedger
from repforge.services.notifications import NotificationHub
from repforge.services.progression_service import ProgressionService
from repforge.services.submission_service import SubmissionService

_WEAK_SECRETS = frozenset({
    "repforge-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> ForgeConfig:
    return load_config(os.getenv("REPFORGE_CONFIG", "config.yaml"))


@lru_cache(maxsize=1)
def get_hub() -> NotificationHub:
    return NotificationHub()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
def get_progression_service(
    engine: Annotated[Engine, Depends(get_engine)],
    config: Annotated[ForgeConfig, Depends(get_config)],
    hub: Annotated[NotificationHub, Depends(get_hub)],
) -> ProgressionService:
    return ProgressionService(engine, config, hub=hub)


def get_arbiter(
    engine: Annotated[Engine, Depends(get_engine)],
    config: Annotated[ForgeConfig, Depends(get_config)],
    progression: Annotated[ProgressionService, Depends(get_progression_service)],
) -> DuelArbiter:
    return DuelArbiter(engine, config, ledger=ProgressionLedger.default(progression))


def get_submission_service(
    progression: Annotated[ProgressionService, Depends(get_progression_service)],
    arbiter: Annotated[DuelArbiter, Depends(get_arbiter)],
) -> SubmissionService:
    return SubmissionService(progression, arbiter=arbiter)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
def _decode_bearer(authorization: str | None) -> dict:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    try:
        payload["user_id"] = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token subject")
    return payload


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Validate JWT and return its payload (``user_id`` = int ``sub``)."""
    return _decode_bearer(authorization)


def get_current_admin(
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Validate JWT and require the ``is_admin`` claim. Raises 401/403."""
    payload = _decode_bearer(authorization)
    if not payload.get("is_admin"):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    return payload
