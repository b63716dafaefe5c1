"""
repforge.engine.levels — Level Resolver
========================================

Maps cumulative XP to a level, class title, and progress fraction using a
monotonic threshold table.  Levels are never stored; they are derived from
XP on demand so they always agree with the current table.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import lru_cache

from repforge.constants import LEVEL_CLASS_CODES, LEVEL_THRESHOLDS

__all__ = [
    "LevelChange",
    "LevelInfo",
    "LevelTable",
    "LevelTier",
    "check_level_up",
    "default_level_table",
    "level_for",
]


@dataclass(frozen=True, slots=True)
class LevelTier:
    level: int
    xp: int
    class_name: str


@dataclass(frozen=True, slots=True)
class LevelInfo:
    level: int
    class_name: str
    threshold_xp: int
    next_threshold_xp: int | None  # None at the max tier
    total_xp: int
    progress: float  # 0 ≤ progress < 1; 0 at the max tier

    @property
    def xp_into_level(self) -> int:
        return self.total_xp - self.threshold_xp

    @property
    def xp_for_next(self) -> int:
        if self.next_threshold_xp is None:
            return 0
        return self.next_threshold_xp - self.threshold_xp

    @property
    def is_max_level(self) -> bool:
        return self.next_threshold_xp is None


@dataclass(frozen=True, slots=True)
class LevelChange:
    leveled_up: bool
    old_level: int
    new_level: int
    old_class_name: str
    new_class_name: str


class LevelTable:
    """Ordered (level, xp threshold, class name) tiers.

    Both level numbers and thresholds must be strictly increasing, and the
    first tier must start at 0 XP so every non-negative XP has a level.
    """

    def __init__(
        self,
        tiers: Iterable[LevelTier | tuple[int, int, str]],
        class_codes: dict[str, str] | None = None,
    ) -> None:
        normalized = tuple(
            t if isinstance(t, LevelTier) else LevelTier(*t) for t in tiers
        )
        if not normalized:
            raise ValueError("level table must have at least one tier")
        if normalized[0].xp != 0:
            raise ValueError("first level tier must start at 0 XP")
        for prev, cur in zip(normalized, normalized[1:]):
            if cur.level <= prev.level or cur.xp <= prev.xp:
                raise ValueError(
                    f"level tiers must be strictly increasing "
                    f"(tier {prev.level}@{prev.xp} → {cur.level}@{cur.xp})"
                )
        self._tiers = normalized
        self._thresholds = tuple(t.xp for t in normalized)
        self._class_codes = dict(class_codes or {})

    def __iter__(self) -> Iterator[LevelTier]:
        return iter(self._tiers)

    def __len__(self) -> int:
        return len(self._tiers)

    @property
    def max_level(self) -> int:
        return self._tiers[-1].level

    def level_for(self, xp: int) -> LevelInfo:
        """Highest tier whose threshold ≤ *xp* (negative XP reads as 0)."""
        total = max(int(xp), 0)
        index = bisect_right(self._thresholds, total) - 1
        tier = self._tiers[index]
        if index + 1 < len(self._tiers):
            next_xp = self._tiers[index + 1].xp
            progress = (total - tier.xp) / (next_xp - tier.xp)
        else:
            next_xp = None
            progress = 0.0
        return LevelInfo(
            level=tier.level,
            class_name=tier.class_name,
            threshold_xp=tier.xp,
            next_threshold_xp=next_xp,
            total_xp=total,
            progress=progress,
        )

    def check_level_up(self, old_xp: int, new_xp: int) -> LevelChange:
        """Compare levels before and after an XP change (detection only)."""
        old = self.level_for(old_xp)
        new = self.level_for(new_xp)
        return LevelChange(
            leveled_up=new.level > old.level,
            old_level=old.level,
            new_level=new.level,
            old_class_name=old.class_name,
            new_class_name=new.class_name,
        )

    def xp_for_level(self, level: int) -> int | None:
        """XP threshold of *level*, or ``None`` if the table has no such tier."""
        for tier in self._tiers:
            if tier.level == level:
                return tier.xp
        return None

    def class_code(self, class_name: str) -> str:
        return self._class_codes.get(class_name, class_name[:2].upper())


@lru_cache(maxsize=1)
def default_level_table() -> LevelTable:
    """The 50-tier production curve from :mod:`repforge.constants`."""
    return LevelTable(LEVEL_THRESHOLDS, class_codes=dict(LEVEL_CLASS_CODES))


def level_for(xp: int, table: LevelTable | None = None) -> LevelInfo:
    return (default_level_table() if table is None else table).level_for(xp)


def check_level_up(old_xp: int, new_xp: int, table: LevelTable | None = None) -> LevelChange:
    return (default_level_table() if table is None else table).check_level_up(old_xp, new_xp)
