"""
repforge.engine.normalizer — Raw Submission → ValidatedStatSet
================================================================

Resolves raw field names through the :class:`StatCatalog`, parses values,
and aggregates duplicates.  Bad entries are dropped one at a time with a
warning (skip-invalid); the submission only fails as a whole when nothing
valid is left.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from repforge.engine.catalog import StatCatalog, default_catalog

logger = logging.getLogger(__name__)

__all__ = ["NoValidStatsError", "normalize_stats", "parse_amount"]

_YES_TOKENS = frozenset({"yes", "y", "true", "si", "sí"})
_NO_TOKENS = frozenset({"no", "n", "false"})
_INT_RE = re.compile(r"^[+-]?\d+$")


class NoValidStatsError(ValueError):
    """Raised when a submission contains no valid stat entries."""

    def __init__(self, message: str = "No valid stats provided") -> None:
        super().__init__(message)


def parse_amount(value: Any, *, boolean: bool = False) -> int | None:
    """Parse one submitted value into a non-negative integer.

    Returns ``None`` for anything that should be dropped: blanks,
    non-numeric text, negatives, and fractional numbers.
    Boolean-style stats also accept Yes/No tokens (→ 1 / 0).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value) if boolean else None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not value.is_integer() or value < 0:
            return None
        return int(value)

    text = str(value).strip()
    if not text:
        return None
    if boolean:
        lowered = text.lower()
        if lowered in _YES_TOKENS:
            return 1
        if lowered in _NO_TOKENS:
            return 0
    if not _INT_RE.match(text):
        return None
    amount = int(text)
    return amount if amount >= 0 else None


def normalize_stats(
    raw_stats: Mapping[str, Any],
    catalog: StatCatalog | None = None,
) -> dict[str, int]:
    """Build a ValidatedStatSet (canonical name → amount) from *raw_stats*.

    Aliases that resolve to the same canonical key are summed.

    Raises
    ------
    NoValidStatsError
        If no entry survives validation.
    """
    if catalog is None:
        catalog = default_catalog()
    validated: dict[str, int] = {}

    for raw_name, value in raw_stats.items():
        canonical = catalog.resolve(raw_name)
        if canonical is None:
            logger.warning("Dropping unknown stat %r", raw_name)
            continue

        amount = parse_amount(value, boolean=catalog[canonical].boolean)
        if amount is None:
            logger.warning("Dropping invalid value %r for stat %s", value, canonical)
            continue

        validated[canonical] = validated.get(canonical, 0) + amount

    if not validated:
        raise NoValidStatsError()
    return validated
