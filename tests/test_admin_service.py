"""
tests/test_admin_service.py — Admin Override Tests
===================================================
Authorization before mutation, clamped signed adjustments, resets, and
the audit trail.
"""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import func, select

from conftest import ADMIN_ID
from repforge.database.models import AdminLog, User
from repforge.engine.progression import AffinityDelta, ProgressionDelta
from repforge.services.admin_service import (
    AdminAuthorizationError,
    adjust_progression,
    list_audit,
    reset_user,
)
from repforge.services.ledger import ProgressionLedger


def _seed(progression, user_id=1, xp=700, warrior=17, mage=4):
    progression.apply_delta(
        user_id, ProgressionDelta(xp=xp, affinity=AffinityDelta(warrior=warrior, mage=mage)),
        username="alice",
    )


class TestAuthorization:
    def test_non_admin_adjust_rejected_before_any_write(self, progression, cfg, db_session):
        with pytest.raises(AdminAuthorizationError):
            adjust_progression(progression, cfg, actor_id=1, user_id=2, xp_delta=500)
        assert db_session.get(User, 2) is None
        assert db_session.scalar(select(func.count()).select_from(AdminLog)) == 0

    def test_non_admin_reset_rejected(self, progression, cfg):
        _seed(progression)
        with pytest.raises(AdminAuthorizationError):
            reset_user(progression.engine, cfg, actor_id=2, user_id=1)
        assert progression.get_totals(1).xp == 700

    def test_authorization_error_is_permission_error(self):
        assert issubclass(AdminAuthorizationError, PermissionError)


class TestAdjust:
    def test_negative_adjustment_clamps_at_zero(self, progression, cfg, db_session):
        _seed(progression)
        update = adjust_progression(
            progression, cfg, actor_id=ADMIN_ID, user_id=1,
            xp_delta=-1000, warrior_delta=-5, reason="duplicate entry",
        )
        assert update.before.xp == 700
        assert update.after.xp == 0
        assert update.after.warrior == 12

        log = db_session.scalars(select(AdminLog)).one()
        assert log.action_type == "ADJUST"
        assert log.target_id == "1"
        assert log.before_snapshot["xp"] == 700
        assert log.after_snapshot["xp"] == 0
        assert log.reason == "duplicate entry"

    def test_positive_adjustment_publishes_level_up(self, progression, cfg, recorder):
        adjust_progression(progression, cfg, actor_id=ADMIN_ID, user_id=5, xp_delta=3000)
        (event,) = recorder.of_type("level_up")
        assert event.new_level == 5
        assert event.source == "admin_adjustment"

    def test_templar_axis_only_moves_by_adjustment(self, progression, cfg):
        adjust_progression(progression, cfg, actor_id=ADMIN_ID, user_id=1, templar_delta=7)
        assert progression.get_totals(1).templar == 7

    def test_ordinary_awards_cannot_be_negative(self, progression):
        ledger = ProgressionLedger.default(progression)
        with pytest.raises(ValueError):
            ledger.award_progression(1, ProgressionDelta(xp=-100))
        with pytest.raises(ValueError):
            progression.apply_delta(1, ProgressionDelta(xp=-100))


class TestReset:
    def test_reset_zeroes_and_purges(self, progression, cfg):
        ledger = ProgressionLedger.default(progression)
        ledger.persist_daily_stats(1, date(2026, 3, 1), {"Approaches": 7})
        _seed(progression)

        summary = reset_user(progression.engine, cfg, actor_id=ADMIN_ID, user_id=1, reason="test")
        assert summary.before["xp"] == 700
        assert summary.stat_rows_deleted == 1
        assert summary.daily_rows_deleted == 1
        assert summary.history_rows_deleted == 1

        assert progression.get_totals(1).xp == 0
        assert progression.get_day_stats(1, date(2026, 3, 1)) == {}
        assert progression.list_submission_days(1) == []
        assert progression.archetype_history(1) == []

    def test_reset_missing_user(self, progression, cfg):
        assert reset_user(progression.engine, cfg, actor_id=ADMIN_ID, user_id=404) is None


class TestAudit:
    def test_list_audit_newest_first_and_filtered(self, progression, cfg):
        adjust_progression(progression, cfg, actor_id=ADMIN_ID, user_id=1, xp_delta=10)
        adjust_progression(progression, cfg, actor_id=ADMIN_ID, user_id=2, xp_delta=20)
        reset_user(progression.engine, cfg, actor_id=ADMIN_ID, user_id=1)

        rows = list_audit(progression.engine)
        assert [r["action_type"] for r in rows] == ["RESET", "ADJUST", "ADJUST"]
        assert [r["target_id"] for r in list_audit(progression.engine, target_id=2)] == ["2"]
        assert len(list_audit(progression.engine, limit=1)) == 1
