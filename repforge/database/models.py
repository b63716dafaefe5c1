"""
repforge.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- users               — Cumulative XP and affinity per member (no level/archetype column)
- user_daily          — One row per (user, local day) with at least one submission
- daily_stat_totals   — Additive per-(user, day, stat) running totals
- duels               — Two-party, time-boxed XP competitions
- duel_contributions  — Append-only per-stat log of activity counted toward a duel
- archetype_history   — Append-only log of archetype transitions
- admin_log           — Append-only audit trail of admin adjustments and resets
"""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all RepForge ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DuelStatus(enum.StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    DECLINED = "declined"
    EXPIRED = "expired"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (DuelStatus.PENDING, DuelStatus.ACTIVE)


class AdminActionType(enum.StrEnum):
    """Categories of admin mutations recorded in admin_log."""
    ADJUST = "ADJUST"
    RESET = "RESET"


# ---------------------------------------------------------------------------
# Users: cumulative progression record
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    username: Mapped[str | None] = mapped_column(String(100), default=None)
    xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    warrior_affinity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    mage_affinity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    # Reserved axis: no catalog stat feeds it; only admin adjustments move it.
    templar_affinity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_users_xp_desc", "xp"),
    )

    def snapshot(self) -> dict[str, int]:
        return {
            "xp": self.xp,
            "warrior_affinity": self.warrior_affinity,
            "mage_affinity": self.mage_affinity,
            "templar_affinity": self.templar_affinity,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.username!r} xp={self.xp}>"


# ---------------------------------------------------------------------------
# UserDaily: submission-day marker
# ---------------------------------------------------------------------------
class UserDaily(Base):
    __tablename__ = "user_daily"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    submission_count: Mapped[int] = mapped_column(
        Integer, default=1, server_default="1", nullable=False
    )
    first_submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<UserDaily user={self.user_id} day={self.day}>"


# ---------------------------------------------------------------------------
# DailyStatTotal: additive per-day running totals
# ---------------------------------------------------------------------------
class DailyStatTotal(Base):
    __tablename__ = "daily_stat_totals"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    stat: Mapped[str] = mapped_column(String(100), primary_key=True)
    total: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    __table_args__ = (
        Index("ix_daily_stat_totals_user_stat", "user_id", "stat"),
    )

    def __repr__(self) -> str:
        return f"<DailyStatTotal user={self.user_id} day={self.day} {self.stat}={self.total}>"


# ---------------------------------------------------------------------------
# Duels
# ---------------------------------------------------------------------------
class Duel(Base):
    __tablename__ = "duels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    challenger_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    opponent_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=DuelStatus.PENDING.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accept_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Snapshots: set on accept / finalize
    challenger_start_xp: Mapped[int | None] = mapped_column(Integer, default=None)
    opponent_start_xp: Mapped[int | None] = mapped_column(Integer, default=None)
    challenger_final_xp: Mapped[int | None] = mapped_column(Integer, default=None)
    opponent_final_xp: Mapped[int | None] = mapped_column(Integer, default=None)
    start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    winner_id: Mapped[int | None] = mapped_column(BigInteger, default=None)  # NULL ⇒ draw

    # Duel-scoped accumulators (since start)
    challenger_xp_gain: Mapped[float] = mapped_column(Float, default=0, server_default="0")
    challenger_warrior_gain: Mapped[float] = mapped_column(Float, default=0, server_default="0")
    challenger_mage_gain: Mapped[float] = mapped_column(Float, default=0, server_default="0")
    opponent_xp_gain: Mapped[float] = mapped_column(Float, default=0, server_default="0")
    opponent_warrior_gain: Mapped[float] = mapped_column(Float, default=0, server_default="0")
    opponent_mage_gain: Mapped[float] = mapped_column(Float, default=0, server_default="0")

    # Sticky fairness flags: only ever flip false → true
    challenger_balance_penalty: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="0", nullable=False
    )
    opponent_balance_penalty: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="0", nullable=False
    )

    __table_args__ = (
        Index("ix_duels_challenger_status", "challenger_id", "status"),
        Index("ix_duels_opponent_status", "opponent_id", "status"),
        Index("ix_duels_status_end", "status", "end_time"),
    )

    def role_of(self, user_id: int) -> str | None:
        if user_id == self.challenger_id:
            return "challenger"
        if user_id == self.opponent_id:
            return "opponent"
        return None

    def __repr__(self) -> str:
        return (
            f"<Duel id={self.id} {self.challenger_id} vs {self.opponent_id} "
            f"status={self.status}>"
        )


class DuelContribution(Base):
    __tablename__ = "duel_contributions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    duel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("duels.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    stat: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    xp: Mapped[float] = mapped_column(Float, default=0)
    warrior: Mapped[float] = mapped_column(Float, default=0)
    mage: Mapped[float] = mapped_column(Float, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_duel_contributions_duel_user", "duel_id", "user_id"),
    )


# ---------------------------------------------------------------------------
# ArchetypeHistory: append-only transition log
# ---------------------------------------------------------------------------
class ArchetypeHistory(Base):
    __tablename__ = "archetype_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    old_archetype: Mapped[str | None] = mapped_column(String(20), default=None)
    new_archetype: Mapped[str] = mapped_column(String(20), nullable=False)
    warrior: Mapped[int] = mapped_column(Integer, default=0)
    mage: Mapped[int] = mapped_column(Integer, default=0)
    mage_share: Mapped[float] = mapped_column(Float, default=0)
    xp_at_change: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_archetype_history_user_time", "user_id", "id"),
    )


# ---------------------------------------------------------------------------
# AdminLog: append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_id", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor_id} action={self.action_type}>"
