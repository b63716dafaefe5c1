"""
repforge.services.admin_service — Admin Overrides
==================================================

Signed progression adjustments and full resets.  Both bypass the stat
normalizer and calculator entirely.  Every write follows the pattern:

  1. Check the actor is an admin (before touching anything)
  2. Begin transaction
  3. Read "before" snapshot
  4. Apply change
  5. Write admin_log with before/after JSON
  6. Commit, then publish any transition events
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update

from repforge.config import ForgeConfig
from repforge.database.engine import get_session
from repforge.database.models import (
    AdminActionType,
    AdminLog,
    ArchetypeHistory,
    DailyStatTotal,
    User,
    UserDaily,
)
from repforge.engine.progression import AffinityDelta, ProgressionDelta
from repforge.services.progression_service import ProgressionService, ProgressionUpdate

logger = logging.getLogger(__name__)


class AdminAuthorizationError(PermissionError):
    """The actor is not configured as an admin."""


@dataclass(frozen=True, slots=True)
class ResetSummary:
    user_id: int
    before: dict[str, Any]
    daily_rows_deleted: int
    stat_rows_deleted: int
    history_rows_deleted: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "before": self.before,
            "daily_rows_deleted": self.daily_rows_deleted,
            "stat_rows_deleted": self.stat_rows_deleted,
            "history_rows_deleted": self.history_rows_deleted,
        }


# ---------------------------------------------------------------------------
# Audit helpers
# ---------------------------------------------------------------------------
def _require_admin(config: ForgeConfig, actor_id: int) -> None:
    if not config.is_admin(actor_id):
        logger.warning("Rejected admin action by non-admin %d", actor_id)
        raise AdminAuthorizationError(f"User {actor_id} is not an admin")


def _log_admin_action(
    session,
    *,
    actor_id: int,
    action_type: str,
    target_id: int,
    before: dict | None,
    after: dict | None,
    reason: str | None,
) -> None:
    """Insert a row into admin_log within the current transaction."""
    session.add(AdminLog(
        actor_id=actor_id,
        action_type=action_type,
        target_table="users",
        target_id=str(target_id),
        before_snapshot=before,
        after_snapshot=after,
        reason=reason,
    ))


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def adjust_progression(
    progression: ProgressionService,
    config: ForgeConfig,
    *,
    actor_id: int,
    user_id: int,
    xp_delta: int = 0,
    warrior_delta: int = 0,
    mage_delta: int = 0,
    templar_delta: int = 0,
    reason: str = "",
) -> ProgressionUpdate:
    """Apply a signed adjustment.  Totals are floored at zero."""
    _require_admin(config, actor_id)
    delta = ProgressionDelta(
        xp=xp_delta,
        affinity=AffinityDelta(warrior=warrior_delta, mage=mage_delta, templar=templar_delta),
    )
    with get_session(progression.engine) as session:
        result = progression.apply_in_session(
            session, user_id, delta, source="admin_adjustment", allow_negative=True,
        )
        _log_admin_action(
            session,
            actor_id=actor_id,
            action_type=AdminActionType.ADJUST.value,
            target_id=user_id,
            before=result.before.to_dict(),
            after=result.after.to_dict(),
            reason=reason or None,
        )
    progression.publish(result)
    logger.info(
        "Admin %d adjusted user %d: xp %+d, warrior %+d, mage %+d, templar %+d (%s)",
        actor_id, user_id, xp_delta, warrior_delta, mage_delta, templar_delta, reason,
    )
    return result


def reset_user(
    engine,
    config: ForgeConfig,
    *,
    actor_id: int,
    user_id: int,
    reason: str = "",
) -> ResetSummary | None:
    """Zero cumulative progression and purge daily/stat/archetype history.

    Returns ``None`` if the user has no record.
    """
    _require_admin(config, actor_id)
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        before = user.snapshot()
        session.execute(
            update(User)
            .where(User.id == user_id)
            .values(xp=0, warrior_affinity=0, mage_affinity=0, templar_affinity=0)
            .execution_options(synchronize_session=False)
        )
        stats = session.execute(delete(DailyStatTotal).where(DailyStatTotal.user_id == user_id))
        daily = session.execute(delete(UserDaily).where(UserDaily.user_id == user_id))
        history = session.execute(
            delete(ArchetypeHistory).where(ArchetypeHistory.user_id == user_id)
        )
        summary = ResetSummary(
            user_id=user_id,
            before=before,
            daily_rows_deleted=daily.rowcount,
            stat_rows_deleted=stats.rowcount,
            history_rows_deleted=history.rowcount,
        )
        _log_admin_action(
            session,
            actor_id=actor_id,
            action_type=AdminActionType.RESET.value,
            target_id=user_id,
            before={**before, "daily_rows": daily.rowcount, "stat_rows": stats.rowcount},
            after={"xp": 0, "warrior_affinity": 0, "mage_affinity": 0, "templar_affinity": 0},
            reason=reason or None,
        )
    logger.info(
        "Admin %d reset user %d (%d days, %d stat rows removed)",
        actor_id, user_id, summary.daily_rows_deleted, summary.stat_rows_deleted,
    )
    return summary


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def list_audit(engine, *, limit: int = 50, target_id: int | None = None) -> list[dict[str, Any]]:
    """Most recent admin_log rows, newest first."""
    with get_session(engine) as session:
        stmt = select(AdminLog).order_by(AdminLog.id.desc()).limit(limit)
        if target_id is not None:
            stmt = stmt.where(AdminLog.target_id == str(target_id))
        rows = session.scalars(stmt).all()
        return [
            {
                "id": r.id,
                "actor_id": r.actor_id,
                "action_type": r.action_type,
                "target_table": r.target_table,
                "target_id": r.target_id,
                "before": r.before_snapshot,
                "after": r.after_snapshot,
                "reason": r.reason,
                "timestamp": r.timestamp.isoformat() if isinstance(r.timestamp, datetime) else None,
            }
            for r in rows
        ]
