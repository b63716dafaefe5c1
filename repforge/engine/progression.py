"""
repforge.engine.progression — XP & Affinity Deltas
===================================================

Pure functions over a ValidatedStatSet and a :class:`StatCatalog`::

    xp      = Σ xp_weight[stat]      × amount[stat]
    warrior = Σ warrior_weight[stat] × amount[stat]
    mage    = Σ mage_weight[stat]    × amount[stat]

Each sum is rounded to the nearest integer once, at the end.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from repforge.engine.catalog import StatCatalog, default_catalog

__all__ = ["AffinityDelta", "ProgressionDelta", "StatContribution", "calculate_progression",
           "per_stat_contributions", "round_half_up"]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


@dataclass(frozen=True, slots=True)
class AffinityDelta:
    warrior: int = 0
    mage: int = 0
    templar: int = 0  # reserved axis; no catalog stat feeds it

    def __add__(self, other: AffinityDelta) -> AffinityDelta:
        return AffinityDelta(
            self.warrior + other.warrior,
            self.mage + other.mage,
            self.templar + other.templar,
        )

    def to_dict(self) -> dict[str, int]:
        return {"warrior": self.warrior, "mage": self.mage, "templar": self.templar}


@dataclass(frozen=True, slots=True)
class ProgressionDelta:
    """XP and affinity gained from one submission."""

    xp: int = 0
    affinity: AffinityDelta = AffinityDelta()

    @property
    def is_empty(self) -> bool:
        a = self.affinity
        return self.xp == 0 and a.warrior == 0 and a.mage == 0 and a.templar == 0


@dataclass(frozen=True, slots=True)
class StatContribution:
    """Unrounded per-stat share of a submission, forwarded to active duels."""

    stat: str
    amount: int
    xp: float
    warrior: float
    mage: float


def per_stat_contributions(
    stats: Mapping[str, int], catalog: StatCatalog | None = None
) -> list[StatContribution]:
    if catalog is None:
        catalog = default_catalog()
    contributions = []
    for name, amount in stats.items():
        definition = catalog.get(name)
        if definition is None:
            continue
        contributions.append(StatContribution(
            stat=name,
            amount=amount,
            xp=definition.xp_weight * amount,
            warrior=definition.warrior_weight * amount,
            mage=definition.mage_weight * amount,
        ))
    return contributions


def calculate_progression(
    stats: Mapping[str, int], catalog: StatCatalog | None = None
) -> ProgressionDelta:
    """Derive the XP and affinity deltas for a validated stat set.

    Deterministic and side-effect free.  Stats missing from *catalog*
    contribute nothing.
    """
    contributions = per_stat_contributions(stats, catalog)
    return ProgressionDelta(
        xp=round_half_up(sum(c.xp for c in contributions)),
        affinity=AffinityDelta(
            warrior=round_half_up(sum(c.warrior for c in contributions)),
            mage=round_half_up(sum(c.mage for c in contributions)),
        ),
    )
