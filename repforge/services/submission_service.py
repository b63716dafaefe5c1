"""
repforge.services.submission_service — Stat Submission Pipeline
================================================================

Input boundary for stat submissions::

    raw stats ─▶ normalize ─▶ persist daily totals ─▶ award (tiered) ─▶ duel tracking

Only an empty stat set fails a submission outright.  A failed daily-stat
write is logged and skipped; a failed award is reported back with
``stats_persisted`` so the caller can retry the award alone.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from repforge.engine.catalog import StatCatalog, default_catalog
from repforge.engine.events import StatSubmission
from repforge.engine.normalizer import NoValidStatsError, normalize_stats
from repforge.engine.progression import (
    AffinityDelta,
    ProgressionDelta,
    calculate_progression,
    per_stat_contributions,
)
from repforge.services.duel_service import DuelArbiter, DuelError
from repforge.services.ledger import AwardContext, AwardFailedError, AwardOutcome, ProgressionLedger
from repforge.services.progression_service import ProgressionService, resolve_day

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubmissionResult:
    success: bool
    user_id: int
    day: date | None = None
    validated_stats: dict[str, int] = field(default_factory=dict)
    affinities: dict[str, int] = field(default_factory=dict)
    xp_awarded: int = 0
    award_tier: str | None = None
    stats_persisted: bool = False
    level_up: dict[str, Any] | None = None
    archetype_change: dict[str, str] | None = None
    duels_updated: list[int] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "user_id": self.user_id,
            "day": self.day.isoformat() if self.day else None,
            "validated_stats": self.validated_stats,
            "affinities": self.affinities,
            "xp_awarded": self.xp_awarded,
            "award_tier": self.award_tier,
            "stats_persisted": self.stats_persisted,
            "level_up": self.level_up,
            "archetype_change": self.archetype_change,
            "duels_updated": self.duels_updated,
            "error": self.error,
        }


def _apply_outcome(result: SubmissionResult, outcome: AwardOutcome) -> None:
    result.award_tier = outcome.tier
    if outcome.level_up is not None:
        lc = outcome.level_up
        result.level_up = {
            "old_level": lc.old_level,
            "new_level": lc.new_level,
            "old_class": lc.old_class_name,
            "new_class": lc.new_class_name,
        }
    if outcome.archetype_change is not None:
        change = outcome.archetype_change
        result.archetype_change = {
            "old": change.previous.value,
            "new": change.new.archetype.value,
        }


class SubmissionService:
    """Runs the submission pipeline.

    Synchronous; call via ``run_db`` from async code.
    """

    def __init__(
        self,
        progression: ProgressionService,
        *,
        ledger: ProgressionLedger | None = None,
        arbiter: DuelArbiter | None = None,
        catalog: StatCatalog | None = None,
    ) -> None:
        self.progression = progression
        self.ledger = ledger or ProgressionLedger.default(progression)
        self.arbiter = arbiter
        self.catalog = default_catalog() if catalog is None else catalog

    def submit(
        self,
        user_id: int,
        raw_stats: Mapping[str, Any],
        *,
        day: date | str | None = None,
        username: str | None = None,
    ) -> SubmissionResult:
        return self.process_submission(
            StatSubmission(user_id=user_id, raw_stats=dict(raw_stats), day=day, username=username)
        )

    def process_submission(self, submission: StatSubmission) -> SubmissionResult:
        user_id = submission.user_id
        try:
            stats = normalize_stats(submission.raw_stats, self.catalog)
        except NoValidStatsError as exc:
            logger.info("Rejected submission from user %d: %s", user_id, exc)
            return SubmissionResult(success=False, user_id=user_id, error=str(exc))

        day = resolve_day(submission.day, self.progression.tz, submission.submitted_at)
        delta = calculate_progression(stats, self.catalog)
        result = SubmissionResult(
            success=True,
            user_id=user_id,
            day=day,
            validated_stats=stats,
            affinities=delta.affinity.to_dict(),
            xp_awarded=delta.xp,
        )

        result.stats_persisted = self.ledger.persist_daily_stats(
            user_id, day, stats,
            username=submission.username, submitted_at=submission.submitted_at,
        )

        try:
            outcome = self.ledger.award_progression(
                user_id, delta, AwardContext(username=submission.username, day=day),
            )
        except AwardFailedError as exc:
            result.success = False
            result.xp_awarded = 0
            result.error = (
                "Your stats were saved but XP could not be awarded right now; "
                "it can be retried."
                if result.stats_persisted
                else "Your stats could not be saved and XP could not be awarded; "
                "please submit again."
            )
            logger.error("%s", exc)
        else:
            _apply_outcome(result, outcome)

        if self.arbiter is not None:
            result.duels_updated = self._track_duels(user_id, stats, submission)
        return result

    def _track_duels(
        self, user_id: int, stats: dict[str, int], submission: StatSubmission
    ) -> list[int]:
        try:
            return self.arbiter.track_submission(
                user_id,
                per_stat_contributions(stats, self.catalog),
                now=submission.submitted_at,
            )
        except DuelError:
            logger.exception("Could not record duel activity for user %d", user_id)
            return []

    def retry_award(
        self,
        user_id: int,
        xp: int,
        affinities: Mapping[str, int] | AffinityDelta | None = None,
        *,
        username: str | None = None,
    ) -> SubmissionResult:
        """Re-run only the award chain for a submission whose award failed."""
        if isinstance(affinities, AffinityDelta):
            affinity = affinities
        else:
            affinities = affinities or {}
            affinity = AffinityDelta(
                warrior=int(affinities.get("warrior", 0)),
                mage=int(affinities.get("mage", 0)),
                templar=int(affinities.get("templar", 0)),
            )
        delta = ProgressionDelta(xp=int(xp), affinity=affinity)
        result = SubmissionResult(
            success=True,
            user_id=user_id,
            affinities=affinity.to_dict(),
            xp_awarded=delta.xp,
            stats_persisted=True,
        )
        try:
            outcome = self.ledger.award_progression(
                user_id, delta, AwardContext(username=username, source="award_retry"),
            )
        except AwardFailedError as exc:
            result.success = False
            result.xp_awarded = 0
            result.error = "XP could not be awarded right now; try again later."
            logger.error("%s", exc)
        else:
            _apply_outcome(result, outcome)
        return result
