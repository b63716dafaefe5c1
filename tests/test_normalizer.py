"""
tests/test_normalizer.py — Stat Catalog & Normalizer Tests
===========================================================
Alias resolution order, per-entry skip-invalid policy, Yes/No parsing for
the boolean stat, and the single whole-submission failure mode.
"""

from __future__ import annotations

import logging

import pytest

from repforge.engine.catalog import StatCatalog, StatDefinition, default_catalog
from repforge.engine.normalizer import NoValidStatsError, normalize_stats, parse_amount


# ===========================================================================
# StatCatalog
# ===========================================================================
class TestStatCatalog:
    def test_default_catalog_has_every_weighted_stat(self):
        catalog = default_catalog()
        assert "Approaches" in catalog
        assert catalog["Approaches"].xp_weight == 100
        assert catalog["Approaches"].warrior_weight == 3
        assert catalog["Retention Streak"].boolean is True
        assert len(catalog) == 23

    def test_resolve_exact_canonical(self):
        assert default_catalog().resolve("Same Night Pull") == "Same Night Pull"

    def test_resolve_alias_case_insensitive(self):
        catalog = default_catalog()
        assert catalog.resolve("SNP") == "Same Night Pull"
        assert catalog.resolve("  approach  ") == "Approaches"

    def test_resolve_canonical_case_insensitive(self):
        assert default_catalog().resolve("dates booked") == "Dates Booked"

    def test_unknown_name_resolves_to_none(self):
        catalog = default_catalog()
        assert catalog.resolve("pushups") is None
        assert catalog.resolve("") is None
        assert catalog.resolve(None) is None

    def test_rejects_duplicate_names(self):
        with pytest.raises(ValueError):
            StatCatalog([StatDefinition("A", 1), StatDefinition("A", 2)])

    def test_rejects_alias_pointing_at_two_stats(self):
        with pytest.raises(ValueError):
            StatCatalog([
                StatDefinition("A", 1, aliases=frozenset({"x"})),
                StatDefinition("B", 1, aliases=frozenset({"x"})),
            ])

    def test_rejects_negative_weights(self):
        with pytest.raises(ValueError):
            StatDefinition("A", -1)
        with pytest.raises(ValueError):
            StatDefinition("A", 1, warrior_weight=-0.5)


# ===========================================================================
# parse_amount
# ===========================================================================
class TestParseAmount:
    @pytest.mark.parametrize("value,expected", [
        (5, 5),
        ("7", 7),
        (" 12 ", 12),
        ("+3", 3),
        (4.0, 4),
        (0, 0),
    ])
    def test_accepts_non_negative_integers(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "-1", -3, 2.5, "1.5", True])
    def test_drops_invalid_values(self, value):
        assert parse_amount(value) is None

    @pytest.mark.parametrize("token,expected", [
        ("Yes", 1), ("y", 1), ("TRUE", 1), ("No", 0), ("n", 0), ("false", 0), (True, 1),
    ])
    def test_boolean_tokens(self, token, expected):
        assert parse_amount(token, boolean=True) == expected

    def test_yes_is_not_a_number_for_counted_stats(self):
        assert parse_amount("yes") is None


# ===========================================================================
# normalize_stats
# ===========================================================================
class TestNormalizeStats:
    def test_aliases_are_summed(self):
        result = normalize_stats({"Approaches": "3", "approach": 2, "APPROACH_COUNT": "1"})
        assert result == {"Approaches": 6}

    def test_unknown_keys_dropped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="repforge.engine.normalizer"):
            result = normalize_stats({"Numbers": 2, "Pushups": 50})
        assert result == {"Numbers": 2}
        assert "Pushups" in caplog.text

    def test_invalid_values_dropped_per_entry(self):
        result = normalize_stats({"Numbers": "-4", "Approaches": "5", "Dates Had": "lots"})
        assert result == {"Approaches": 5}

    def test_retention_streak_yes_no(self):
        assert normalize_stats({"retention": "Yes", "Numbers": 1}) == {
            "Retention Streak": 1, "Numbers": 1,
        }
        assert normalize_stats({"Retention Streak": "No"}) == {"Retention Streak": 0}

    def test_zero_amounts_are_kept(self):
        assert normalize_stats({"Approaches": 0}) == {"Approaches": 0}

    def test_empty_result_raises(self):
        with pytest.raises(NoValidStatsError, match="No valid stats"):
            normalize_stats({"Pushups": 5, "Approaches": "-2"})

    def test_empty_input_raises(self):
        with pytest.raises(NoValidStatsError):
            normalize_stats({})

    def test_no_valid_stats_is_a_value_error(self):
        assert issubclass(NoValidStatsError, ValueError)

    def test_custom_catalog(self):
        catalog = StatCatalog([StatDefinition("Reps", 10, aliases=frozenset({"r"}))])
        assert normalize_stats({"R": 4, "Approaches": 1}, catalog) == {"Reps": 4}

    def test_empty_catalog_is_not_replaced_by_default(self):
        with pytest.raises(NoValidStatsError):
            normalize_stats({"Approaches": 1}, StatCatalog([]))
