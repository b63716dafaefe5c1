"""
repforge.engine.events — Transition Events & Submission Envelope
=================================================================

Events emitted by the progression services for an external announcer to
render and deliver.  This package never formats or sends messages itself.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, date, datetime
from typing import Any

__all__ = ["ArchetypeChangeEvent", "LevelUpEvent", "StatSubmission"]


@dataclass(frozen=True, slots=True)
class LevelUpEvent:
    user_id: int
    old_level: int
    new_level: int
    old_class: str
    new_class: str
    source: str = "stats_submission"

    event_type = "level_up"

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True, slots=True)
class ArchetypeChangeEvent:
    user_id: int
    old_archetype: str
    new_archetype: str
    warrior: int = 0
    mage: int = 0
    source: str = "stats_submission"

    event_type = "archetype_change"

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True, slots=True)
class StatSubmission:
    """Normalized input to the submission pipeline."""

    user_id: int
    raw_stats: dict[str, Any]
    day: date | str | None = None
    username: str | None = None
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))
