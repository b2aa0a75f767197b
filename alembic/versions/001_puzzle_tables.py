"""Users, puzzles and per-user completion records.

Revision ID: 001_puzzle_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_puzzle_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create users, puzzles and puzzle_completions."""
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("display_name", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )

    op.create_table(
        "puzzles",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("short_key", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("data", sa.Text, nullable=False),
        sa.Column("minimum_components", sa.Integer, nullable=False, server_default="0"),
        sa.Column("author_id", sa.BigInteger, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("author_name", sa.String(64), nullable=True),
        sa.Column("completions", sa.Integer, nullable=False, server_default="0"),
        sa.Column("downloads", sa.Integer, nullable=False, server_default="0"),
        sa.Column("likes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("average_time", sa.Float, nullable=True),
        sa.Column("difficulty", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("author_id", "short_key", name="uq_puzzle_author_short_key"),
        sa.CheckConstraint("completions >= 0 AND downloads >= 0 AND likes >= 0", name="ck_puzzle_counters"),
    )
    op.create_index("ix_puzzles_author_id", "puzzles", ["author_id"])
    op.create_index("idx_puzzle_created", "puzzles", ["created_at"])
    op.create_index("idx_puzzle_likes", "puzzles", ["likes"])

    # No FK on puzzle_id: deleting a puzzle orphans its records
    op.create_table(
        "puzzle_completions",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("puzzle_id", sa.BigInteger, nullable=False),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column("completed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("liked", sa.Boolean, nullable=True),
        sa.Column("time_taken", sa.Float, nullable=True),
        sa.Column("components_used", sa.Integer, nullable=True),
        sa.Column("nands_used", sa.Integer, nullable=True),
        sa.Column("difficulty_rating", sa.SmallInteger, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("puzzle_id", "user_id", name="uq_completion_puzzle_user"),
    )
    op.create_index("idx_completion_user", "puzzle_completions", ["user_id", "completed"])


def downgrade() -> None:
    op.drop_table("puzzle_completions")
    op.drop_table("puzzles")
    op.drop_table("users")
