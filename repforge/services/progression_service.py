"""
repforge.services.progression_service — Progression Domain Service
===================================================================

Applies XP/affinity deltas to a user's cumulative record and detects the
transitions that result (level-up, archetype change).  Level and archetype
are never stored; both are derived from the totals returned by the atomic
update, before and after.

Also owns the read side: profiles, per-day stat totals, submission days.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from repforge.config import ForgeConfig
from repforge.database.engine import get_session
from repforge.database.models import ArchetypeHistory, DailyStatTotal, User, UserDaily
from repforge.database.repository import add_to_user, ensure_user
from repforge.engine.archetype import (
    Archetype,
    ArchetypeChange,
    ArchetypeClassifier,
    ArchetypeReading,
)
from repforge.engine.events import ArchetypeChangeEvent, LevelUpEvent
from repforge.engine.levels import LevelChange, LevelInfo, LevelTable, default_level_table
from repforge.engine.progression import ProgressionDelta

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from repforge.services.notifications import NotificationHub

logger = logging.getLogger(__name__)

TOP_STATS_LIMIT = 5


# ---------------------------------------------------------------------------
# Day resolution
# ---------------------------------------------------------------------------
def local_day(now: datetime | None = None, tz: ZoneInfo | None = None) -> date:
    """Calendar day of *now* in *tz* (UTC when no timezone is configured)."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(tz or UTC).date()


def resolve_day(
    override: date | str | None, tz: ZoneInfo | None = None, now: datetime | None = None
) -> date:
    """Explicit day override, or today in *tz*.

    A malformed or future override is dropped with a warning rather than
    failing the submission.
    """
    today = local_day(now, tz)
    day: date | None = None
    if isinstance(override, datetime):
        day = local_day(override, tz)
    elif isinstance(override, date):
        day = override
    elif isinstance(override, str) and override.strip():
        try:
            day = date.fromisoformat(override.strip())
        except ValueError:
            logger.warning("Ignoring malformed day override %r; using today", override)
    if day is None:
        return today
    if day > today:
        logger.warning("Ignoring future day override %s (today is %s)", day, today)
        return today
    return day


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ProgressionTotals:
    xp: int = 0
    warrior: int = 0
    mage: int = 0
    templar: int = 0

    @classmethod
    def from_row(cls, row: Any) -> ProgressionTotals:
        return cls(
            xp=row.xp,
            warrior=row.warrior_affinity,
            mage=row.mage_affinity,
            templar=row.templar_affinity,
        )

    def minus(self, delta: ProgressionDelta) -> ProgressionTotals:
        a = delta.affinity
        return ProgressionTotals(
            self.xp - delta.xp, self.warrior - a.warrior, self.mage - a.mage,
            self.templar - a.templar,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "xp": self.xp,
            "warrior_affinity": self.warrior,
            "mage_affinity": self.mage,
            "templar_affinity": self.templar,
        }


@dataclass(frozen=True, slots=True)
class ProgressionUpdate:
    """Outcome of one applied delta, with detected transitions."""

    user_id: int
    before: ProgressionTotals
    after: ProgressionTotals
    level_change: LevelChange
    archetype_change: ArchetypeChange
    events: tuple = ()

    @property
    def leveled_up(self) -> bool:
        return self.level_change.leveled_up

    @property
    def archetype_changed(self) -> bool:
        return self.archetype_change.changed


@dataclass(frozen=True, slots=True)
class UserProfile:
    user_id: int
    username: str | None
    totals: ProgressionTotals
    level: LevelInfo
    archetype: ArchetypeReading
    rank: int
    top_stats: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            **self.totals.to_dict(),
            "level": self.level.level,
            "class_name": self.level.class_name,
            "level_progress": round(self.level.progress, 4),
            "xp_into_level": self.level.xp_into_level,
            "xp_for_next": self.level.xp_for_next,
            "next_threshold_xp": self.level.next_threshold_xp,
            "archetype": self.archetype.to_dict(),
            "rank": self.rank,
            "top_stats": [{"stat": s, "total": t} for s, t in self.top_stats],
        }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class ProgressionService:
    """Domain service for cumulative progression.

    All methods are synchronous; call via ``await run_db(service.method, ...)``
    from async code.
    """

    def __init__(
        self,
        engine: Engine,
        config: ForgeConfig | None = None,
        *,
        level_table: LevelTable | None = None,
        classifier: ArchetypeClassifier | None = None,
        hub: NotificationHub | None = None,
    ) -> None:
        self.engine = engine
        self.config = config
        self.level_table = default_level_table() if level_table is None else level_table
        if classifier is None:
            if config is not None:
                classifier = ArchetypeClassifier(config.balance_band(), config.hysteresis_margin())
            else:
                classifier = ArchetypeClassifier()
        self.classifier = classifier
        self.hub = hub

    @property
    def tz(self) -> ZoneInfo | None:
        return self.config.tz() if self.config else None

    # -- write side ---------------------------------------------------------

    def apply_delta(
        self,
        user_id: int,
        delta: ProgressionDelta,
        *,
        username: str | None = None,
        source: str = "stats_submission",
        allow_negative: bool = False,
    ) -> ProgressionUpdate:
        """Apply *delta* atomically, commit, then publish transition events."""
        with get_session(self.engine) as session:
            result = self.apply_in_session(
                session, user_id, delta,
                username=username, source=source, allow_negative=allow_negative,
            )
        self.publish(result)
        return result

    def apply_in_session(
        self,
        session: Session,
        user_id: int,
        delta: ProgressionDelta,
        *,
        username: str | None = None,
        source: str = "stats_submission",
        allow_negative: bool = False,
    ) -> ProgressionUpdate:
        """Same as :meth:`apply_delta` inside the caller's transaction.

        Events are built but not published; the caller publishes after commit.
        Ordinary deltas must be non-negative; *allow_negative* (admin only)
        permits signed deltas and floors every total at zero.
        """
        a = delta.affinity
        if not allow_negative and min(delta.xp, a.warrior, a.mage, a.templar) < 0:
            raise ValueError("negative progression deltas require an admin adjustment")

        ensure_user(session, user_id, username)
        counters = {"xp": delta.xp, "warrior": a.warrior, "mage": a.mage, "templar": a.templar}
        if allow_negative:
            before = ProgressionTotals.from_row(session.execute(
                select(
                    User.xp, User.warrior_affinity, User.mage_affinity, User.templar_affinity,
                ).where(User.id == user_id).with_for_update()
            ).one())
            after = ProgressionTotals.from_row(
                add_to_user(session, user_id, clamp_at_zero=True, **counters)
            )
        else:
            after = ProgressionTotals.from_row(add_to_user(session, user_id, **counters))
            # Unclamped add-in-place: the pre-image is exactly new − delta.
            before = after.minus(delta)

        level_change = self.level_table.check_level_up(before.xp, after.xp)
        last_reported = self._last_reported(session, user_id) if self.classifier.hysteresis else None
        change = self.classifier.detect_change(
            before.warrior, before.mage, after.warrior, after.mage, last_reported=last_reported,
        )
        self._record_archetype(session, user_id, change, after)

        events: list = []
        if level_change.leveled_up:
            events.append(LevelUpEvent(
                user_id=user_id,
                old_level=level_change.old_level,
                new_level=level_change.new_level,
                old_class=level_change.old_class_name,
                new_class=level_change.new_class_name,
                source=source,
            ))
        if change.changed:
            events.append(ArchetypeChangeEvent(
                user_id=user_id,
                old_archetype=change.previous.value,
                new_archetype=change.new.archetype.value,
                warrior=after.warrior,
                mage=after.mage,
                source=source,
            ))

        return ProgressionUpdate(user_id, before, after, level_change, change, tuple(events))

    def publish(self, update: ProgressionUpdate) -> None:
        if self.hub is None:
            return
        self.hub.publish_all(list(update.events))

    # -- archetype history ------------------------------------------------------

    @staticmethod
    def _last_reported(session: Session, user_id: int) -> Archetype | None:
        label = session.scalar(
            select(ArchetypeHistory.new_archetype)
            .where(ArchetypeHistory.user_id == user_id)
            .order_by(ArchetypeHistory.id.desc())
            .limit(1)
        )
        return Archetype(label) if label else None

    def _record_archetype(
        self, session: Session, user_id: int, change: ArchetypeChange, after: ProgressionTotals
    ) -> None:
        """Append to archetype_history on a reported change or a first classification."""
        first_label = (
            not change.old.archetype.is_determined and change.new.archetype.is_determined
        )
        if not change.changed and not first_label:
            return
        session.add(ArchetypeHistory(
            user_id=user_id,
            old_archetype=change.previous.value if change.changed else None,
            new_archetype=change.new.archetype.value,
            warrior=after.warrior,
            mage=after.mage,
            mage_share=change.new.mage_share,
            xp_at_change=after.xp,
        ))

    def archetype_history(self, user_id: int, limit: int = 20) -> list[dict[str, Any]]:
        with get_session(self.engine) as session:
            rows = session.scalars(
                select(ArchetypeHistory)
                .where(ArchetypeHistory.user_id == user_id)
                .order_by(ArchetypeHistory.id.desc())
                .limit(limit)
            ).all()
            return [
                {
                    "old_archetype": r.old_archetype,
                    "new_archetype": r.new_archetype,
                    "warrior": r.warrior,
                    "mage": r.mage,
                    "mage_share": r.mage_share,
                    "xp_at_change": r.xp_at_change,
                    "created_at": r.created_at.isoformat() if r.created_at else None,
                }
                for r in rows
            ]

    # -- read side --------------------------------------------------------------

    def get_totals(self, user_id: int) -> ProgressionTotals:
        with get_session(self.engine) as session:
            user = session.get(User, user_id)
            return ProgressionTotals.from_row(user) if user else ProgressionTotals()

    def get_profile(self, user_id: int) -> UserProfile | None:
        """Totals, derived level and archetype, XP rank, and top stats."""
        with get_session(self.engine) as session:
            user = session.get(User, user_id)
            if user is None:
                return None
            totals = ProgressionTotals.from_row(user)
            ahead = session.scalar(
                select(func.count()).select_from(User).where(User.xp > user.xp)
            ) or 0
            top = session.execute(
                select(DailyStatTotal.stat, func.sum(DailyStatTotal.total).label("total"))
                .where(DailyStatTotal.user_id == user_id)
                .group_by(DailyStatTotal.stat)
                .order_by(func.sum(DailyStatTotal.total).desc(), DailyStatTotal.stat)
                .limit(TOP_STATS_LIMIT)
            ).all()
            return UserProfile(
                user_id=user.id,
                username=user.username,
                totals=totals,
                level=self.level_table.level_for(totals.xp),
                archetype=self.classifier.classify(totals.warrior, totals.mage),
                rank=ahead + 1,
                top_stats=[(row.stat, int(row.total)) for row in top],
            )

    def get_day_stats(self, user_id: int, day: date) -> dict[str, int]:
        with get_session(self.engine) as session:
            rows = session.execute(
                select(DailyStatTotal.stat, DailyStatTotal.total)
                .where(DailyStatTotal.user_id == user_id, DailyStatTotal.day == day)
                .order_by(DailyStatTotal.stat)
            ).all()
            return {row.stat: row.total for row in rows}

    def list_submission_days(self, user_id: int, limit: int = 30) -> list[date]:
        """Days with at least one submission, most recent first."""
        with get_session(self.engine) as session:
            return list(session.scalars(
                select(UserDaily.day)
                .where(UserDaily.user_id == user_id)
                .order_by(UserDaily.day.desc())
                .limit(limit)
            ).all())
