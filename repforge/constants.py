"""
repforge.constants — Reference Tables
======================================

Single source of truth for the stat catalog data and the level curve.
These are plain immutable tables; the engine wraps them in
:class:`~repforge.engine.catalog.StatCatalog` and
:class:`~repforge.engine.levels.LevelTable` so alternate tables can be
injected for tuning and tests.
"""

from __future__ import annotations

from types import MappingProxyType

# ---------------------------------------------------------------------------
# XP per unit of each canonical stat
# ---------------------------------------------------------------------------
STAT_WEIGHTS: MappingProxyType[str, int] = MappingProxyType({
    "Approaches": 100,
    "Numbers": 100,
    "New Contact Response": 100,
    "Hellos To Strangers": 10,
    "Confidence Tension Journal Entry": 100,
    "Dates Booked": 100,
    "Dates Had": 250,
    "Instant Date": 500,
    "Got Laid": 250,
    "Same Night Pull": 2000,
    "Courage Welcoming": 50,
    "SBMM Meditation": 100,
    "Grounding": 50,
    "Releasing Sesh": 25,
    "In Action Release": 50,
    "Course Module": 250,
    "Course Experiment": 100,
    "Attended Group Call": 200,
    "Overall State Today (1-10)": 50,
    "Retention Streak": 100,
    "Tensey Exercise": 100,
    "Chat Engagement": 5,
    "Wins Sharing": 25,
})

# ---------------------------------------------------------------------------
# Warrior / Mage affinity per unit (w = outer action, m = inner work)
# ---------------------------------------------------------------------------
AFFINITY_WEIGHTS: MappingProxyType[str, tuple[float, float]] = MappingProxyType({
    # Core social
    "Approaches": (3, 0),
    "Numbers": (1, 0),
    "New Contact Response": (1, 0),
    "Hellos To Strangers": (1, 0),
    "In Action Release": (0, 3),
    # Dating & results
    "Dates Booked": (2, 0),
    "Dates Had": (3, 0),
    "Instant Date": (4, 0),
    "Got Laid": (1, 1),
    "Same Night Pull": (8, 0),
    # Inner work
    "Courage Welcoming": (2, 1),
    "SBMM Meditation": (0, 9),
    "Grounding": (0, 4),
    "Releasing Sesh": (0, 6),
    # Learning
    "Course Module": (2, 9),
    "Course Experiment": (2, 4),
    # Daily state
    "Attended Group Call": (1, 3),
    "Overall State Today (1-10)": (0, 2),
    "Retention Streak": (0, 4),
    # Other
    "Confidence Tension Journal Entry": (0, 3),
    "Tensey Exercise": (3, 1),
    "Chat Engagement": (0, 0.5),
    "Wins Sharing": (1, 1),
})

# ---------------------------------------------------------------------------
# Aliases: lower-case / snake_case spellings → canonical key
# ---------------------------------------------------------------------------
STAT_ALIASES: MappingProxyType[str, str] = MappingProxyType({
    "approach": "Approaches",
    "approach_count": "Approaches",
    "number": "Numbers",
    "new_contact_response": "New Contact Response",
    "contact_response": "New Contact Response",
    "contact": "New Contact Response",
    "hellos_to_strangers": "Hellos To Strangers",
    "hello_to_strangers": "Hellos To Strangers",
    "hello": "Hellos To Strangers",
    "hellos": "Hellos To Strangers",
    "ctj": "Confidence Tension Journal Entry",
    "confidence_tension_journal": "Confidence Tension Journal Entry",
    "confidence_tension_journal_entry": "Confidence Tension Journal Entry",
    "journal": "Confidence Tension Journal Entry",
    "journal_entry": "Confidence Tension Journal Entry",
    "date_booked": "Dates Booked",
    "dates_booked": "Dates Booked",
    "date_had": "Dates Had",
    "dates_had": "Dates Had",
    "date": "Dates Had",
    "instant_date": "Instant Date",
    "instant-date": "Instant Date",
    "got_laid": "Got Laid",
    "laid": "Got Laid",
    "same_night_pull": "Same Night Pull",
    "same_night": "Same Night Pull",
    "same-night": "Same Night Pull",
    "snp": "Same Night Pull",
    "courage_welcoming": "Courage Welcoming",
    "courage-welcoming": "Courage Welcoming",
    "courage": "Courage Welcoming",
    "welcoming": "Courage Welcoming",
    "sbmm_meditation": "SBMM Meditation",
    "sbmm-meditation": "SBMM Meditation",
    "sbmm": "SBMM Meditation",
    "meditation": "SBMM Meditation",
    "releasing_sesh": "Releasing Sesh",
    "releasing-sesh": "Releasing Sesh",
    "releasing_session": "Releasing Sesh",
    "releasing": "Releasing Sesh",
    "in_action_release": "In Action Release",
    "in-action-release": "In Action Release",
    "in_action": "In Action Release",
    "in-action": "In Action Release",
    "course_module": "Course Module",
    "course-module": "Course Module",
    "module": "Course Module",
    "course_experiment": "Course Experiment",
    "course-experiment": "Course Experiment",
    "experiment": "Course Experiment",
    "attended_group_call": "Attended Group Call",
    "group_call": "Attended Group Call",
    "group-call": "Attended Group Call",
    "call": "Attended Group Call",
    "overall_state_today": "Overall State Today (1-10)",
    "overall_state_today_(1-10)": "Overall State Today (1-10)",
    "overall_state_today_1_10": "Overall State Today (1-10)",
    "state": "Overall State Today (1-10)",
    "state_1_10": "Overall State Today (1-10)",
    "retention_streak": "Retention Streak",
    "retention": "Retention Streak",
    "sr": "Retention Streak",
    "streak": "Retention Streak",
    "tensey_exercise": "Tensey Exercise",
    "tensey": "Tensey Exercise",
    "tenseys": "Tensey Exercise",
    "chat_engagement": "Chat Engagement",
    "chat": "Chat Engagement",
    "engagement": "Chat Engagement",
    "wins_sharing": "Wins Sharing",
    "wins": "Wins Sharing",
    "sharing": "Wins Sharing",
})

# Stats submitted as Yes/No instead of a count
BOOLEAN_STATS: frozenset[str] = frozenset({"Retention Streak"})

# ---------------------------------------------------------------------------
# Level curve: (level, xp threshold, class title); 50 tiers
# ---------------------------------------------------------------------------
_CLASS_BANDS: tuple[tuple[int, str], ...] = (
    (1, "Awkward Initiate"),
    (5, "Social Squire"),
    (10, "Bold Explorer"),
    (15, "Magnetic Challenger"),
    (20, "Audacious Knight"),
    (25, "Charisma Vanguard"),
    (30, "Seduction Sage"),
    (35, "Embodiment Warlord"),
    (40, "Flirtation Overlord"),
    (45, "Reality Architect"),
    (50, "Galactic Sexy Bastard God-King"),
)

_THRESHOLDS: tuple[int, ...] = (
    0, 500, 1200, 2000, 3000, 4200, 5600, 7200, 9000, 11000,
    13200, 15600, 18200, 21000, 24000, 27200, 30600, 34200, 38000, 42000,
    46200, 50600, 55200, 60000, 65000, 70200, 75600, 81200, 87000, 93000,
    99200, 105600, 112200, 119000, 126000, 133200, 140600, 148200, 156000, 164000,
    172200, 180600, 189200, 198000, 207000, 216200, 225600, 235200, 245000, 255000,
)


def _class_for(level: int) -> str:
    name = _CLASS_BANDS[0][1]
    for min_level, band_name in _CLASS_BANDS:
        if level >= min_level:
            name = band_name
    return name


LEVEL_THRESHOLDS: tuple[tuple[int, int, str], ...] = tuple(
    (level, xp, _class_for(level))
    for level, xp in enumerate(_THRESHOLDS, start=1)
)

LEVEL_CLASS_CODES: MappingProxyType[str, str] = MappingProxyType({
    "Awkward Initiate": "AI",
    "Social Squire": "SQ",
    "Bold Explorer": "BE",
    "Magnetic Challenger": "MC",
    "Audacious Knight": "AK",
    "Charisma Vanguard": "CV",
    "Seduction Sage": "SD",
    "Embodiment Warlord": "EW",
    "Flirtation Overlord": "FO",
    "Reality Architect": "RA",
    "Galactic Sexy Bastard God-King": "GK",
})

# ---------------------------------------------------------------------------
# Duel fairness defaults
# ---------------------------------------------------------------------------
DEFAULT_BALANCE_LOWER = 0.40
DEFAULT_BALANCE_UPPER = 0.60
PERFECT_BALANCE_LOWER = 0.45
PERFECT_BALANCE_UPPER = 0.55
