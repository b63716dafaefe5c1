"""
RepForge — Progression & Fair-Competition Engine
=================================================
Turns self-reported daily activity stats into cumulative XP, a derived
level and class title, a Warrior/Mage/Templar archetype, and head-to-head
duels with a fairness rule on affinity balance.

Package layout::

    repforge/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Stat weights, aliases, 50-tier level curve
    ├── engine/            # Pure calculation, no I/O
    │   ├── catalog.py     # StatCatalog (weights + alias resolution)
    │   ├── normalizer.py  # Raw submission → validated stat set
    │   ├── progression.py # XP / affinity deltas
    │   ├── levels.py      # XP → level, class title, progress
    │   ├── archetype.py   # Affinity totals → archetype
    │   └── events.py      # Level-up / archetype-change events
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models
    │   └── repository.py  # Atomic add-in-place statements
    ├── services/
    │   ├── ledger.py              # Daily stat persistence + tiered award
    │   ├── progression_service.py # Deltas with transition detection, profiles
    │   ├── submission_service.py  # Submission pipeline
    │   ├── duel_service.py        # DuelArbiter
    │   ├── duel_sweeper.py        # Periodic expiry / finalize task
    │   ├── admin_service.py       # Audited adjustments and resets
    │   └── notifications.py       # Event fan-out to announcers
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT + service dependencies
        └── routes/        # Public, submission, duel, admin endpoints
"""

__version__ = "0.1.0"
