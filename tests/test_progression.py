"""
tests/test_progression.py — XP & Affinity Calculation Tests
============================================================
Pure-function tests for the progression calculator (no database).
"""

from __future__ import annotations

import pytest

from repforge.engine.catalog import StatCatalog, StatDefinition
from repforge.engine.progression import (
    AffinityDelta,
    ProgressionDelta,
    calculate_progression,
    per_stat_contributions,
    round_half_up,
)


class TestCalculateProgression:
    def test_reference_example(self):
        delta = calculate_progression({"Approaches": 5, "Numbers": 2})
        assert delta.xp == 700
        assert delta.affinity == AffinityDelta(warrior=17, mage=0)

    def test_mixed_axes(self):
        delta = calculate_progression({"Course Module": 1, "Grounding": 2})
        # 250 + 2×50 XP; warrior 2; mage 9 + 2×4
        assert delta.xp == 350
        assert delta.affinity.warrior == 2
        assert delta.affinity.mage == 17

    def test_rounds_once_at_the_end(self):
        # Chat Engagement: mage 0.5 per unit.  Per-term rounding of three
        # single-unit entries would give 0 or 3; the sum 1.5 rounds to 2.
        catalog = StatCatalog([
            StatDefinition("A", 1, mage_weight=0.5),
            StatDefinition("B", 1, mage_weight=0.5),
            StatDefinition("C", 1, mage_weight=0.5),
        ])
        delta = calculate_progression({"A": 1, "B": 1, "C": 1}, catalog)
        assert delta.affinity.mage == 2

    def test_templar_axis_never_fed_by_stats(self):
        delta = calculate_progression({name: 1 for name in ("Approaches", "SBMM Meditation")})
        assert delta.affinity.templar == 0

    def test_unknown_stats_contribute_nothing(self):
        assert calculate_progression({"Nope": 10}) == ProgressionDelta()

    def test_zero_amounts_give_empty_delta(self):
        assert calculate_progression({"Approaches": 0}).is_empty

    def test_empty_catalog_is_not_replaced_by_default(self):
        assert calculate_progression({"Approaches": 5}, StatCatalog([])) == ProgressionDelta()

    def test_additivity_over_submissions(self):
        subs = [{"Approaches": 2}, {"Numbers": 3, "Grounding": 1}, {"Approaches": 1}]
        total_xp = sum(calculate_progression(s).xp for s in subs)
        combined = calculate_progression({"Approaches": 3, "Numbers": 3, "Grounding": 1})
        assert total_xp == combined.xp

    def test_deterministic(self):
        stats = {"Dates Had": 1, "Wins Sharing": 4}
        assert calculate_progression(stats) == calculate_progression(dict(stats))


class TestPerStatContributions:
    def test_unrounded_shares(self):
        contributions = per_stat_contributions({"Chat Engagement": 3, "Approaches": 1})
        by_stat = {c.stat: c for c in contributions}
        assert by_stat["Chat Engagement"].mage == pytest.approx(1.5)
        assert by_stat["Chat Engagement"].xp == 15
        assert by_stat["Approaches"].warrior == 3

    def test_skips_unknown(self):
        assert per_stat_contributions({"Nope": 1}) == []


class TestAffinityDelta:
    def test_addition(self):
        assert AffinityDelta(1, 2, 3) + AffinityDelta(4, 5, 6) == AffinityDelta(5, 7, 9)

    def test_to_dict(self):
        assert AffinityDelta(warrior=3).to_dict() == {"warrior": 3, "mage": 0, "templar": 0}


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [
        (0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (-0.5, -1), (-1.4, -1), (0.0, 0),
    ])
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected
