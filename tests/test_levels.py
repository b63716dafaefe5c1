"""
tests/test_levels.py — Level Resolver Tests
============================================
"""

from __future__ import annotations

import pytest

from repforge.engine.levels import (
    LevelTable,
    LevelTier,
    check_level_up,
    default_level_table,
    level_for,
)


class TestDefaultTable:
    def test_fifty_tiers(self):
        table = default_level_table()
        assert len(table) == 50
        assert table.max_level == 50

    def test_thresholds_strictly_increasing(self):
        tiers = list(default_level_table())
        for prev, cur in zip(tiers, tiers[1:]):
            assert cur.level > prev.level
            assert cur.xp > prev.xp

    def test_class_titles(self):
        assert level_for(0).class_name == "Awkward Initiate"
        assert level_for(3000).class_name == "Social Squire"
        assert level_for(255_000).class_name == "Galactic Sexy Bastard God-King"

    def test_class_codes(self):
        table = default_level_table()
        for tier in table:
            assert len(table.class_code(tier.class_name)) == 2


class TestLevelFor:
    def test_zero_xp_is_level_one(self):
        info = level_for(0)
        assert info.level == 1
        assert info.progress == 0.0
        assert info.next_threshold_xp == 500

    def test_progress_within_tier(self):
        info = level_for(850)  # level 2: 500 → 1200
        assert info.level == 2
        assert info.progress == pytest.approx(0.5)
        assert info.xp_into_level == 350
        assert info.xp_for_next == 700

    def test_max_tier_progress_is_zero(self):
        info = level_for(10_000_000)
        assert info.level == 50
        assert info.is_max_level
        assert info.progress == 0.0
        assert info.next_threshold_xp is None
        assert info.xp_for_next == 0

    def test_negative_xp_reads_as_zero(self):
        assert level_for(-50).level == 1

    def test_monotonic(self):
        levels = [level_for(xp).level for xp in range(0, 260_000, 997)]
        assert levels == sorted(levels)

    def test_idempotent_at_threshold(self):
        for xp in (0, 499, 500, 1199, 1200, 87_000, 254_999):
            info = level_for(xp)
            assert level_for(info.threshold_xp).level == info.level


class TestCheckLevelUp:
    def test_zero_to_five_hundred_levels_up(self):
        change = check_level_up(0, 500)
        assert change.leveled_up
        assert (change.old_level, change.new_level) == (1, 2)
        assert change.old_class_name == "Awkward Initiate"

    def test_within_tier_no_level_up(self):
        assert not check_level_up(500, 1100).leveled_up

    def test_multi_level_jump(self):
        change = check_level_up(0, 3000)
        assert change.leveled_up
        assert change.new_level == 5
        assert change.new_class_name == "Social Squire"

    def test_decrease_is_not_level_up(self):
        assert not check_level_up(3000, 0).leveled_up


class TestCustomTable:
    def test_alternate_table_injected(self):
        table = LevelTable([(1, 0, "Rookie"), (2, 10, "Pro")])
        assert level_for(10, table).class_name == "Pro"
        assert table.xp_for_level(2) == 10
        assert table.xp_for_level(3) is None

    def test_accepts_tier_objects(self):
        table = LevelTable([LevelTier(1, 0, "A"), LevelTier(2, 5, "B")])
        assert table.level_for(7).level == 2

    @pytest.mark.parametrize("tiers", [
        [],
        [(1, 10, "A")],
        [(1, 0, "A"), (2, 0, "B")],
        [(1, 0, "A"), (1, 5, "B")],
        [(1, 0, "A"), (2, 50, "B"), (3, 40, "C")],
    ])
    def test_rejects_malformed_tables(self, tiers):
        with pytest.raises(ValueError):
            LevelTable(tiers)
