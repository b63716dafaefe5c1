"""
repforge.services.ledger — Progression Ledger
==============================================

Makes stat accumulation and the XP/affinity award durable.

Submission flow::

    Received → Normalized → StatsPersisted → AwardAttempted{tier} → Success | PartialFailure

* :meth:`ProgressionLedger.persist_daily_stats` upserts the day marker and
  every per-stat running total.  A failure is logged and the submission
  carries on.
* :meth:`ProgressionLedger.award_progression` walks an ordered chain of
  :class:`AwardStrategy` objects; the first one that succeeds wins and no
  later tier runs.  If every tier fails, :class:`AwardFailedError` is raised
  but the stat totals already committed stay committed, so the award can be
  retried on its own.

Default chain:

1. ``domain``     — :class:`ProgressionService` (level-up / archetype detection,
                    notifications)
2. ``repository`` — ORM ``INSERT … ON CONFLICT DO UPDATE`` (no detection)
3. ``raw_sql``    — plain-SQL upsert statement (last resort)

Every tier is a single add-in-place statement against ``users``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Protocol

from repforge.database.engine import get_session
from repforge.database.repository import (
    ensure_user,
    raw_upsert_user_totals,
    upsert_daily_marker,
    upsert_daily_stat,
    upsert_user_totals,
)
from repforge.engine.progression import ProgressionDelta
from repforge.services.progression_service import (
    ProgressionService,
    ProgressionTotals,
    ProgressionUpdate,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors & results
# ---------------------------------------------------------------------------
class AwardFailedError(RuntimeError):
    """Every award tier failed.  Stat totals persisted earlier are kept."""

    def __init__(self, user_id: int, errors: Sequence[tuple[str, BaseException]]) -> None:
        self.user_id = user_id
        self.errors = list(errors)
        detail = "; ".join(f"{name}: {exc}" for name, exc in self.errors)
        super().__init__(f"All award tiers failed for user {user_id} ({detail})")


@dataclass(frozen=True, slots=True)
class AwardContext:
    username: str | None = None
    source: str = "stats_submission"
    day: date | None = None


@dataclass(frozen=True, slots=True)
class AwardOutcome:
    user_id: int
    delta: ProgressionDelta
    tier: str | None  # None when there was nothing to award
    tier_index: int | None = None
    update: ProgressionUpdate | None = None  # only the domain tier detects transitions
    failed_tiers: tuple[str, ...] = ()

    @property
    def level_up(self):
        if self.update is None or not self.update.leveled_up:
            return None
        return self.update.level_change

    @property
    def archetype_change(self):
        if self.update is None or not self.update.archetype_changed:
            return None
        return self.update.archetype_change


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------
class AwardStrategy(Protocol):
    name: str

    def award(
        self, user_id: int, delta: ProgressionDelta, context: AwardContext
    ) -> ProgressionUpdate | ProgressionTotals | None: ...


class DomainServiceAward:
    """Tier 1: full domain path with transition detection and notifications."""

    name = "domain"

    def __init__(self, progression: ProgressionService) -> None:
        self.progression = progression

    def award(self, user_id, delta, context):
        return self.progression.apply_delta(
            user_id, delta, username=context.username, source=context.source,
        )


class RepositoryAward:
    """Tier 2: ORM-built atomic upsert, no transition detection."""

    name = "repository"

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def award(self, user_id, delta, context):
        a = delta.affinity
        with get_session(self.engine) as session:
            row = upsert_user_totals(
                session, user_id,
                xp=delta.xp, warrior=a.warrior, mage=a.mage, templar=a.templar,
            )
            return ProgressionTotals.from_row(row)


class RawSqlAward:
    """Tier 3: hand-written upsert statement."""

    name = "raw_sql"

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def award(self, user_id, delta, context):
        a = delta.affinity
        with get_session(self.engine) as session:
            raw_upsert_user_totals(
                session, user_id,
                xp=delta.xp, warrior=a.warrior, mage=a.mage, templar=a.templar,
            )
        return None


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
@dataclass
class ProgressionLedger:
    engine: Engine
    strategies: list[AwardStrategy] = field(default_factory=list)

    @classmethod
    def default(cls, progression: ProgressionService) -> ProgressionLedger:
        engine = progression.engine
        return cls(engine, [
            DomainServiceAward(progression),
            RepositoryAward(engine),
            RawSqlAward(engine),
        ])

    def persist_daily_stats(
        self,
        user_id: int,
        day: date,
        stats: Mapping[str, int],
        *,
        username: str | None = None,
        submitted_at: datetime | None = None,
    ) -> bool:
        """Upsert the day marker and additive per-stat totals.

        Each stat is written under its own SAVEPOINT, so one failing key is
        logged and skipped while the others are kept.  Returns ``False`` when
        the marker or any key failed; the caller continues with the award
        regardless.
        """
        submitted_at = submitted_at or datetime.now(UTC)
        failed: list[str] = []
        try:
            with get_session(self.engine) as session:
                ensure_user(session, user_id, username)
                upsert_daily_marker(session, user_id, day, submitted_at)
                for stat, amount in stats.items():
                    try:
                        with session.begin_nested():
                            upsert_daily_stat(session, user_id, day, stat, amount)
                    except Exception:
                        logger.exception(
                            "Failed to persist %r for user %d on %s", stat, user_id, day,
                        )
                        failed.append(stat)
        except Exception:
            logger.exception(
                "Failed to persist daily stats for user %d on %s (%d stats)",
                user_id, day, len(stats),
            )
            return False
        if failed:
            return False
        logger.debug("Persisted %d daily stats for user %d on %s", len(stats), user_id, day)
        return True

    def award_progression(
        self,
        user_id: int,
        delta: ProgressionDelta,
        context: AwardContext | None = None,
    ) -> AwardOutcome:
        """Try each strategy in order; the first success wins.

        Raises
        ------
        ValueError
            If any component of *delta* is negative.
        AwardFailedError
            If every strategy raised.
        """
        context = context or AwardContext()
        a = delta.affinity
        if min(delta.xp, a.warrior, a.mage, a.templar) < 0:
            raise ValueError("submission awards cannot be negative")
        if delta.is_empty:
            return AwardOutcome(user_id, delta, tier=None)

        errors: list[tuple[str, BaseException]] = []
        for index, strategy in enumerate(self.strategies, start=1):
            try:
                result = strategy.award(user_id, delta, context)
            except Exception as exc:
                logger.exception(
                    "Award tier %d (%s) failed for user %d", index, strategy.name, user_id,
                )
                errors.append((strategy.name, exc))
                continue

            logger.info(
                "Awarded user %d +%d XP (warrior +%d, mage +%d) via tier %d (%s)",
                user_id, delta.xp, a.warrior, a.mage, index, strategy.name,
            )
            return AwardOutcome(
                user_id,
                delta,
                tier=strategy.name,
                tier_index=index,
                update=result if isinstance(result, ProgressionUpdate) else None,
                failed_tiers=tuple(name for name, _ in errors),
            )

        raise AwardFailedError(user_id, errors)
