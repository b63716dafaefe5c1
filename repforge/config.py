"""
repforge.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for community identity, the day-boundary timezone,
admin identities, and the tuning knobs of the archetype and duel rules.
The stat catalog and level curve are *not* here; they are immutable tables
in :mod:`repforge.constants` injected into the engine.

Usage::

    from repforge.config import load_config

    cfg = load_config()            # reads ./config.yaml by default
    print(cfg.community_name)      # "Rep Gym"
    band = cfg.balance_band()      # BalanceBand(lower=0.4, upper=0.6)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from repforge.constants import DEFAULT_BALANCE_LOWER, DEFAULT_BALANCE_UPPER

ARCHETYPE_POLICIES = ("immediate", "hysteresis")


# ---------------------------------------------------------------------------
# Balance band value object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BalanceBand:
    """Inclusive share range (0–1) considered "balanced"."""

    lower: float = DEFAULT_BALANCE_LOWER
    upper: float = DEFAULT_BALANCE_UPPER

    def __post_init__(self) -> None:
        if not 0.0 <= self.lower < self.upper <= 1.0:
            raise ValueError(
                f"Invalid balance band [{self.lower}, {self.upper}]: "
                "need 0 <= lower < upper <= 1"
            )

    def contains(self, share: float) -> bool:
        return self.lower <= share <= self.upper

    def widened(self, margin: float) -> BalanceBand:
        return BalanceBand(max(0.0, self.lower - margin), min(1.0, self.upper + margin))

    def narrowed(self, margin: float) -> BalanceBand:
        return BalanceBand(self.lower + margin, self.upper - margin)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ForgeConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str
    timezone: str  # IANA name; defines the calendar day of a submission

    # Admin / hardened access
    admin_user_ids: frozenset[int] = field(default_factory=frozenset)

    # Archetype rules
    balance_band_lower: float = DEFAULT_BALANCE_LOWER
    balance_band_upper: float = DEFAULT_BALANCE_UPPER
    archetype_change_policy: str = "immediate"
    archetype_hysteresis_margin: float = 0.05

    # Duels
    duel_accept_window_minutes: int = 60
    duel_duration_hours: int = 24
    duel_challenge_cooldown_seconds: int = 60
    duel_sweep_interval_seconds: int = 600
    duel_history_limit: int = 10
    duel_win_xp: int = 500  # paid to the winner of a completed duel
    duel_perfect_balance_xp: int = 250  # extra when the winner stayed within 45–55% Warrior

    # Optional
    announce_channel_id: int | None = None  # Where the announcer posts level-ups

    def __post_init__(self) -> None:
        self.balance_band()  # validates bounds
        if abs((self.balance_band_lower + self.balance_band_upper) - 1.0) > 1e-9:
            raise ValueError(
                "balance band must be symmetric around 50% "
                f"(got [{self.balance_band_lower}, {self.balance_band_upper}])"
            )
        if self.archetype_change_policy not in ARCHETYPE_POLICIES:
            raise ValueError(
                f"archetype_change_policy must be one of {ARCHETYPE_POLICIES}, "
                f"got {self.archetype_change_policy!r}"
            )
        half_width = (self.balance_band_upper - self.balance_band_lower) / 2
        if not 0 <= self.archetype_hysteresis_margin < half_width:
            raise ValueError(
                "archetype_hysteresis_margin must be >= 0 and smaller than "
                f"half the band width ({half_width})"
            )
        if self.duel_win_xp < 0 or self.duel_perfect_balance_xp < 0:
            raise ValueError("duel victory rewards must be >= 0")
        self.tz()  # validates timezone name

    def balance_band(self) -> BalanceBand:
        return BalanceBand(self.balance_band_lower, self.balance_band_upper)

    def tz(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    def hysteresis_margin(self) -> float:
        """Margin applied to change detection (0 under the immediate policy)."""
        if self.archetype_change_policy == "hysteresis":
            return self.archetype_hysteresis_margin
        return 0.0

    def is_admin(self, user_id: int) -> bool:
        return user_id in self.admin_user_ids


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> ForgeConfig:
    """Read *path* and return a :class:`ForgeConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If a value is out of range (band, policy, timezone).
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return ForgeConfig(
        community_name=raw["community_name"],
        timezone=raw["timezone"],
        admin_user_ids=frozenset(int(uid) for uid in raw.get("admin_user_ids") or ()),
        balance_band_lower=float(raw.get("balance_band_lower", DEFAULT_BALANCE_LOWER)),
        balance_band_upper=float(raw.get("balance_band_upper", DEFAULT_BALANCE_UPPER)),
        archetype_change_policy=raw.get("archetype_change_policy", "immediate"),
        archetype_hysteresis_margin=float(raw.get("archetype_hysteresis_margin", 0.05)),
        duel_accept_window_minutes=int(raw.get("duel_accept_window_minutes", 60)),
        duel_duration_hours=int(raw.get("duel_duration_hours", 24)),
        duel_challenge_cooldown_seconds=int(raw.get("duel_challenge_cooldown_seconds", 60)),
        duel_sweep_interval_seconds=int(raw.get("duel_sweep_interval_seconds", 600)),
        duel_history_limit=int(raw.get("duel_history_limit", 10)),
        duel_win_xp=int(raw.get("duel_win_xp", 500)),
        duel_perfect_balance_xp=int(raw.get("duel_perfect_balance_xp", 250)),
        announce_channel_id=(
            int(raw["announce_channel_id"]) if raw.get("announce_channel_id") else None
        ),
    )
