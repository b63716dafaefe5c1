"""
repforge.engine.archetype — Archetype Classifier
=================================================

Derives the dominant archetype from cumulative Warrior/Mage affinity::

    mage_share = mage / (warrior + mage)

* both totals zero        → ``NEW_INITIATE`` (undetermined)
* mage_share inside band  → ``TEMPLAR`` (balanced)
* otherwise               → whichever axis is larger

The templar affinity axis never enters the share.  Change detection can
optionally apply a hysteresis margin so totals hovering at a band edge do
not flip the reported label on every submission; the displayed archetype
is always the plain classification.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from repforge.config import BalanceBand

__all__ = ["Archetype", "ArchetypeChange", "ArchetypeClassifier", "ArchetypeReading"]


class Archetype(enum.StrEnum):
    NEW_INITIATE = "New Initiate"
    WARRIOR = "Warrior"
    MAGE = "Mage"
    TEMPLAR = "Templar"

    @property
    def is_determined(self) -> bool:
        return self is not Archetype.NEW_INITIATE


@dataclass(frozen=True, slots=True)
class ArchetypeReading:
    archetype: Archetype
    warrior: int
    mage: int
    warrior_share: float  # 0–1
    mage_share: float  # 0–1

    @property
    def is_balanced(self) -> bool:
        return self.archetype is Archetype.TEMPLAR

    @property
    def warrior_percent(self) -> float:
        return round(self.warrior_share * 100, 1)

    @property
    def mage_percent(self) -> float:
        return round(self.mage_share * 100, 1)

    def to_dict(self) -> dict:
        return {
            "archetype": self.archetype.value,
            "warrior": self.warrior,
            "mage": self.mage,
            "warrior_percent": self.warrior_percent,
            "mage_percent": self.mage_percent,
            "is_balanced": self.is_balanced,
        }


@dataclass(frozen=True, slots=True)
class ArchetypeChange:
    changed: bool
    old: ArchetypeReading
    new: ArchetypeReading
    reference: Archetype | None = None  # label compared against, if not old

    @property
    def previous(self) -> Archetype:
        return self.reference or self.old.archetype


class ArchetypeClassifier:
    """Classifies affinity totals against a :class:`BalanceBand`.

    Parameters
    ----------
    band : balance band applied to the Mage share (default 40–60%).
    hysteresis : margin (0–1) used only by :meth:`detect_change`.  With a
        non-zero margin, a Templar stays Templar until the share leaves the
        band widened by the margin, and a Warrior/Mage only becomes Templar
        once the share enters the band narrowed by the margin.
    """

    def __init__(self, band: BalanceBand | None = None, hysteresis: float = 0.0) -> None:
        self.band = band or BalanceBand()
        self.hysteresis = hysteresis

    def classify(self, warrior: int, mage: int) -> ArchetypeReading:
        return self._classify(warrior, mage, self.band)

    def _classify(self, warrior: int, mage: int, band: BalanceBand) -> ArchetypeReading:
        w = max(int(warrior or 0), 0)
        m = max(int(mage or 0), 0)
        total = w + m
        if total == 0:
            return ArchetypeReading(Archetype.NEW_INITIATE, 0, 0, 0.0, 0.0)

        mage_share = m / total
        if band.contains(mage_share):
            label = Archetype.TEMPLAR
        elif mage_share < band.lower:
            label = Archetype.WARRIOR
        else:
            label = Archetype.MAGE
        return ArchetypeReading(label, w, m, 1.0 - mage_share, mage_share)

    @staticmethod
    def has_archetype_changed(old: ArchetypeReading, new: ArchetypeReading) -> bool:
        """Plain label inequality; moving from/to undetermined is not a change."""
        if not old.archetype.is_determined or not new.archetype.is_determined:
            return False
        return old.archetype is not new.archetype

    def detect_change(
        self,
        old_warrior: int,
        old_mage: int,
        new_warrior: int,
        new_mage: int,
        *,
        last_reported: Archetype | None = None,
    ) -> ArchetypeChange:
        """Compare archetypes before and after an affinity change.

        Under hysteresis the comparison is made against *last_reported*
        (the label of the most recent recorded transition) when known,
        since the plain "before" label may have drifted across an edge
        without being reported.
        """
        old = self.classify(old_warrior, old_mage)
        new = self.classify(new_warrior, new_mage)
        if not self.hysteresis:
            return ArchetypeChange(self.has_archetype_changed(old, new), old, new)

        reference = last_reported or old.archetype
        if not reference.is_determined or not new.archetype.is_determined:
            return ArchetypeChange(False, old, new)
        if reference is Archetype.TEMPLAR:
            sticky_band = self.band.widened(self.hysteresis)
        else:
            sticky_band = self.band.narrowed(self.hysteresis)
        gated = self._classify(new_warrior, new_mage, sticky_band).archetype
        changed = gated is not reference and gated is new.archetype
        return ArchetypeChange(changed, old, new, reference)
