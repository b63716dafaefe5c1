"""Initial progression schema

Revision ID: 5e1c0a7b9d42
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5e1c0a7b9d42"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), **kwargs)


def upgrade() -> None:
    """Users, daily totals, duels, archetype history, and the admin audit log."""
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("username", sa.String(100)),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("warrior_affinity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mage_affinity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("templar_affinity", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_users_xp_desc", "users", ["xp"])

    op.create_table(
        "user_daily",
        sa.Column(
            "user_id", sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("day", sa.Date(), primary_key=True),
        sa.Column("submission_count", sa.Integer(), nullable=False, server_default="1"),
        _timestamp("first_submitted_at"),
    )

    op.create_table(
        "daily_stat_totals",
        sa.Column(
            "user_id", sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("day", sa.Date(), primary_key=True),
        sa.Column("stat", sa.String(100), primary_key=True),
        sa.Column("total", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_daily_stat_totals_user_stat", "daily_stat_totals", ["user_id", "stat"],
    )

    gain = {"server_default": "0"}
    op.create_table(
        "duels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("challenger_id", sa.BigInteger(), nullable=False),
        sa.Column("opponent_id", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accept_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("challenger_start_xp", sa.Integer()),
        sa.Column("opponent_start_xp", sa.Integer()),
        sa.Column("challenger_final_xp", sa.Integer()),
        sa.Column("opponent_final_xp", sa.Integer()),
        sa.Column("start_time", sa.DateTime(timezone=True)),
        sa.Column("end_time", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("winner_id", sa.BigInteger()),
        sa.Column("challenger_xp_gain", sa.Float(), **gain),
        sa.Column("challenger_warrior_gain", sa.Float(), **gain),
        sa.Column("challenger_mage_gain", sa.Float(), **gain),
        sa.Column("opponent_xp_gain", sa.Float(), **gain),
        sa.Column("opponent_warrior_gain", sa.Float(), **gain),
        sa.Column("opponent_mage_gain", sa.Float(), **gain),
        sa.Column(
            "challenger_balance_penalty", sa.Boolean(), nullable=False, server_default=sa.false(),
        ),
        sa.Column(
            "opponent_balance_penalty", sa.Boolean(), nullable=False, server_default=sa.false(),
        ),
    )
    op.create_index("ix_duels_challenger_status", "duels", ["challenger_id", "status"])
    op.create_index("ix_duels_opponent_status", "duels", ["opponent_id", "status"])
    op.create_index("ix_duels_status_end", "duels", ["status", "end_time"])

    op.create_table(
        "duel_contributions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "duel_id", sa.Integer(),
            sa.ForeignKey("duels.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("stat", sa.String(100), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("xp", sa.Float()),
        sa.Column("warrior", sa.Float()),
        sa.Column("mage", sa.Float()),
        _timestamp("created_at"),
    )
    op.create_index(
        "ix_duel_contributions_duel_user", "duel_contributions", ["duel_id", "user_id"],
    )

    op.create_table(
        "archetype_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("old_archetype", sa.String(20)),
        sa.Column("new_archetype", sa.String(20), nullable=False),
        sa.Column("warrior", sa.Integer()),
        sa.Column("mage", sa.Integer()),
        sa.Column("mage_share", sa.Float()),
        sa.Column("xp_at_change", sa.Integer()),
        _timestamp("created_at"),
    )
    op.create_index("ix_archetype_history_user_time", "archetype_history", ["user_id", "id"])

    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.BigInteger(), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100)),
        sa.Column("before_snapshot", sa.JSON()),
        sa.Column("after_snapshot", sa.JSON()),
        sa.Column("reason", sa.Text()),
        _timestamp("timestamp"),
    )
    op.create_index("ix_admin_log_actor_time", "admin_log", ["actor_id", "timestamp"])
    op.create_index(
        "ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"],
    )


def downgrade() -> None:
    for table in (
        "admin_log",
        "archetype_history",
        "duel_contributions",
        "duels",
        "daily_stat_totals",
        "user_daily",
        "users",
    ):
        op.drop_table(table)
