"""
tests/test_config.py — Configuration Loader Tests
==================================================
"""

from __future__ import annotations

import textwrap

import pytest

from repforge.config import BalanceBand, ForgeConfig, load_config


def _write(tmp_path, body: str):
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_minimal_file_uses_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, """
            community_name: Rep Gym
            timezone: America/New_York
        """))
        assert cfg.community_name == "Rep Gym"
        assert cfg.balance_band() == BalanceBand(0.4, 0.6)
        assert cfg.archetype_change_policy == "immediate"
        assert cfg.hysteresis_margin() == 0.0
        assert cfg.duel_duration_hours == 24
        assert (cfg.duel_win_xp, cfg.duel_perfect_balance_xp) == (500, 250)
        assert cfg.admin_user_ids == frozenset()

    def test_full_file(self, tmp_path):
        cfg = load_config(_write(tmp_path, """
            community_name: Rep Gym
            timezone: UTC
            admin_user_ids: [1, "2"]
            balance_band_lower: 0.35
            balance_band_upper: 0.65
            archetype_change_policy: hysteresis
            archetype_hysteresis_margin: 0.1
            duel_accept_window_minutes: 30
            duel_challenge_cooldown_seconds: 5
            duel_win_xp: 300
            duel_perfect_balance_xp: 0
            announce_channel_id: 42
        """))
        assert cfg.admin_user_ids == frozenset({1, 2})
        assert cfg.is_admin(2)
        assert cfg.hysteresis_margin() == pytest.approx(0.1)
        assert cfg.duel_accept_window_minutes == 30
        assert (cfg.duel_win_xp, cfg.duel_perfect_balance_xp) == (300, 0)
        assert cfg.announce_channel_id == 42

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "community_name: Rep Gym\n"))


class TestValidation:
    def test_asymmetric_band_rejected(self):
        with pytest.raises(ValueError, match="symmetric"):
            ForgeConfig("X", "UTC", balance_band_lower=0.3, balance_band_upper=0.6)

    def test_inverted_band_rejected(self):
        with pytest.raises(ValueError):
            BalanceBand(0.6, 0.4)

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError, match="archetype_change_policy"):
            ForgeConfig("X", "UTC", archetype_change_policy="sometimes")

    def test_margin_must_fit_inside_band(self):
        with pytest.raises(ValueError, match="hysteresis"):
            ForgeConfig("X", "UTC", archetype_hysteresis_margin=0.1)

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValueError, match="timezone"):
            ForgeConfig("X", "Mars/Olympus_Mons")

    def test_negative_duel_reward_rejected(self):
        with pytest.raises(ValueError, match="victory rewards"):
            ForgeConfig("X", "UTC", duel_win_xp=-1)
