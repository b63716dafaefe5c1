"""
repforge.database.repository — Atomic Counter Statements
=========================================================

Single-statement, add-in-place writes for the cumulative counters.  Nothing
here reads a counter into Python and writes it back; every statement lets
the database compute ``column = column + :delta`` so concurrent submissions
from the same user cannot lose updates.

All helpers take an open :class:`Session` and leave commit/rollback to the
caller (normally :func:`repforge.database.engine.get_session`).
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Row, bindparam, case, func, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from repforge.database.models import User

_COUNTER_COLUMNS = ("xp", "warrior_affinity", "mage_affinity", "templar_affinity")


def _dialect_insert(session: Session):
    """Return the dialect-specific ``insert()`` that supports ON CONFLICT."""
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"No atomic upsert for dialect '{name}'")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
def ensure_user(session: Session, user_id: int, username: str | None = None) -> None:
    """Insert an all-zero user row if none exists; refresh the username."""
    session.execute(
        text("""
            INSERT INTO users (id, username, xp, warrior_affinity, mage_affinity, templar_affinity)
            VALUES (:uid, :username, 0, 0, 0, 0)
            ON CONFLICT (id) DO NOTHING
        """),
        {"uid": user_id, "username": username},
    )
    if username:
        session.execute(
            update(User)
            .where(User.id == user_id, User.username.is_distinct_from(username))
            .values(username=username)
            .execution_options(synchronize_session=False)
        )


def add_to_user(
    session: Session,
    user_id: int,
    *,
    xp: int = 0,
    warrior: int = 0,
    mage: int = 0,
    templar: int = 0,
    clamp_at_zero: bool = False,
) -> Row | None:
    """``SET col = col + delta`` on an existing row; returns the new totals.

    With *clamp_at_zero* each column is floored at 0 (admin adjustments).
    Returns ``None`` when the user row does not exist.
    """
    deltas = dict(zip(_COUNTER_COLUMNS, (xp, warrior, mage, templar)))
    values = {}
    for column_name, delta in deltas.items():
        column = getattr(User, column_name)
        if clamp_at_zero:
            values[column_name] = case((column + delta < 0, 0), else_=column + delta)
        else:
            values[column_name] = column + delta
    values["updated_at"] = func.now()

    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(**values)
        .returning(User.xp, User.warrior_affinity, User.mage_affinity, User.templar_affinity)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).one_or_none()


def upsert_user_totals(
    session: Session,
    user_id: int,
    *,
    xp: int = 0,
    warrior: int = 0,
    mage: int = 0,
    templar: int = 0,
) -> Row:
    """``INSERT … ON CONFLICT (id) DO UPDATE`` adding the deltas in place."""
    insert = _dialect_insert(session)
    stmt = insert(User).values(
        id=user_id,
        xp=xp,
        warrior_affinity=warrior,
        mage_affinity=mage,
        templar_affinity=templar,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[User.id],
        set_={
            "xp": User.xp + stmt.excluded.xp,
            "warrior_affinity": User.warrior_affinity + stmt.excluded.warrior_affinity,
            "mage_affinity": User.mage_affinity + stmt.excluded.mage_affinity,
            "templar_affinity": User.templar_affinity + stmt.excluded.templar_affinity,
            "updated_at": func.now(),
        },
    ).returning(User.xp, User.warrior_affinity, User.mage_affinity, User.templar_affinity)
    return session.execute(stmt).one()


def raw_upsert_user_totals(
    session: Session,
    user_id: int,
    *,
    xp: int = 0,
    warrior: int = 0,
    mage: int = 0,
    templar: int = 0,
) -> None:
    """Plain-SQL version of :func:`upsert_user_totals` (no ORM, no RETURNING)."""
    session.execute(
        text("""
            INSERT INTO users (id, xp, warrior_affinity, mage_affinity, templar_affinity)
            VALUES (:uid, :xp, :warrior, :mage, :templar)
            ON CONFLICT (id) DO UPDATE SET
                xp = users.xp + excluded.xp,
                warrior_affinity = users.warrior_affinity + excluded.warrior_affinity,
                mage_affinity = users.mage_affinity + excluded.mage_affinity,
                templar_affinity = users.templar_affinity + excluded.templar_affinity,
                updated_at = CURRENT_TIMESTAMP
        """),
        {"uid": user_id, "xp": xp, "warrior": warrior, "mage": mage, "templar": templar},
    )


# ---------------------------------------------------------------------------
# Daily records
# ---------------------------------------------------------------------------
def upsert_daily_marker(
    session: Session, user_id: int, day: date, submitted_at: datetime
) -> None:
    """Mark *day* as a submission day (count is additive across submissions)."""
    session.execute(
        text("""
            INSERT INTO user_daily (user_id, day, submission_count, first_submitted_at)
            VALUES (:uid, :day, 1, :ts)
            ON CONFLICT (user_id, day)
            DO UPDATE SET submission_count = user_daily.submission_count + 1
        """).bindparams(
            bindparam("day", type_=Date()),
            bindparam("ts", type_=DateTime(timezone=True)),
        ),
        {"uid": user_id, "day": day, "ts": submitted_at},
    )


def upsert_daily_stat(session: Session, user_id: int, day: date, stat: str, amount: int) -> None:
    """Add *amount* to the running (user, day, stat) total."""
    session.execute(
        text("""
            INSERT INTO daily_stat_totals (user_id, day, stat, total)
            VALUES (:uid, :day, :stat, :amount)
            ON CONFLICT (user_id, day, stat)
            DO UPDATE SET total = daily_stat_totals.total + excluded.total
        """).bindparams(bindparam("day", type_=Date())),
        {"uid": user_id, "day": day, "stat": stat, "amount": amount},
    )
