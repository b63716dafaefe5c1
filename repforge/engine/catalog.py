"""
repforge.engine.catalog — Stat Catalog
=======================================

The static table of canonical stat keys with their XP weight, their
Warrior/Mage affinity weights, and a case-insensitive alias map.

Pure data — no I/O.  Build the production table with
:func:`default_catalog`; tests and tuning experiments can build their own
:class:`StatCatalog` from any iterable of :class:`StatDefinition`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType

from repforge.constants import (
    AFFINITY_WEIGHTS,
    BOOLEAN_STATS,
    STAT_ALIASES,
    STAT_WEIGHTS,
)

__all__ = ["StatDefinition", "StatCatalog", "default_catalog"]


@dataclass(frozen=True, slots=True)
class StatDefinition:
    """One canonical stat and its weights."""

    name: str
    xp_weight: int
    warrior_weight: float = 0
    mage_weight: float = 0
    aliases: frozenset[str] = field(default_factory=frozenset)
    boolean: bool = False  # submitted as Yes/No rather than a count

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("stat name must be non-empty")
        if self.xp_weight < 0:
            raise ValueError(f"{self.name}: xp_weight must be >= 0")
        if self.warrior_weight < 0 or self.mage_weight < 0:
            raise ValueError(f"{self.name}: affinity weights must be >= 0")


class StatCatalog:
    """Immutable lookup table over a set of :class:`StatDefinition`.

    Resolution order used by :meth:`resolve`:

    1. exact canonical match (``"Approaches"``)
    2. case-insensitive alias (``"SNP"`` → ``"Same Night Pull"``)
    3. case-insensitive canonical match (``"approaches"``)
    """

    def __init__(self, definitions: Iterable[StatDefinition]) -> None:
        by_name: dict[str, StatDefinition] = {}
        aliases: dict[str, str] = {}
        for definition in definitions:
            if definition.name in by_name:
                raise ValueError(f"duplicate stat: {definition.name}")
            by_name[definition.name] = definition
            for alias in definition.aliases:
                key = alias.strip().lower()
                existing = aliases.get(key)
                if existing is not None and existing != definition.name:
                    raise ValueError(
                        f"alias {alias!r} maps to both {existing!r} and {definition.name!r}"
                    )
                aliases[key] = definition.name

        self._stats: Mapping[str, StatDefinition] = MappingProxyType(by_name)
        self._aliases: Mapping[str, str] = MappingProxyType(aliases)
        self._lower_names: Mapping[str, str] = MappingProxyType(
            {name.lower(): name for name in by_name}
        )

    def __contains__(self, name: object) -> bool:
        return name in self._stats

    def __iter__(self) -> Iterator[StatDefinition]:
        return iter(self._stats.values())

    def __len__(self) -> int:
        return len(self._stats)

    def get(self, name: str) -> StatDefinition | None:
        return self._stats.get(name)

    def __getitem__(self, name: str) -> StatDefinition:
        return self._stats[name]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._stats)

    def resolve(self, raw_name: object) -> str | None:
        """Map a raw submitted field name to its canonical key, or ``None``."""
        if raw_name is None:
            return None
        key = str(raw_name).strip()
        if not key:
            return None
        if key in self._stats:
            return key
        lower = key.lower()
        canonical = self._aliases.get(lower)
        if canonical is not None:
            return canonical
        return self._lower_names.get(lower)


@lru_cache(maxsize=1)
def default_catalog() -> StatCatalog:
    """The production catalog built from :mod:`repforge.constants`."""
    aliases_by_stat: dict[str, set[str]] = {name: set() for name in STAT_WEIGHTS}
    for alias, canonical in STAT_ALIASES.items():
        aliases_by_stat[canonical].add(alias)

    definitions = []
    for name, xp_weight in STAT_WEIGHTS.items():
        warrior, mage = AFFINITY_WEIGHTS.get(name, (0, 0))
        definitions.append(StatDefinition(
            name=name,
            xp_weight=xp_weight,
            warrior_weight=warrior,
            mage_weight=mage,
            aliases=frozenset(aliases_by_stat[name]),
            boolean=name in BOOLEAN_STATS,
        ))
    return StatCatalog(definitions)
