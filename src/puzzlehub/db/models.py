"""ORM models for users, puzzles and per-user completion records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from puzzlehub.db.base import Base


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Registered player."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(64), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Puzzles
# ---------------------------------------------------------------------------


class Puzzle(Base):
    """Puzzle aggregate: content blob plus running statistics.

    ``author_name`` is a snapshot taken at submission time and does not follow
    later display name changes. ``author_id`` is NULL for house puzzles.
    """

    __tablename__ = "puzzles"
    __table_args__ = (
        UniqueConstraint("author_id", "short_key", name="uq_puzzle_author_short_key"),
        CheckConstraint("completions >= 0 AND downloads >= 0 AND likes >= 0", name="ck_puzzle_counters"),
        Index("idx_puzzle_created", "created_at"),
        Index("idx_puzzle_likes", "likes"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    short_key: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    data: Mapped[str] = mapped_column(Text, nullable=False)
    minimum_components: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    author_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True, index=True
    )
    author_name: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # --- Statistics ---
    completions: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    downloads: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    average_time: Mapped[float | None] = mapped_column(Float, nullable=True)
    difficulty: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PuzzleCompletion(Base):
    """One row per (puzzle, user), created on first download.

    ``puzzle_id`` has no foreign key: deleting a puzzle leaves
    its completion records orphaned rather than cascading.
    """

    __tablename__ = "puzzle_completions"
    __table_args__ = (
        UniqueConstraint("puzzle_id", "user_id", name="uq_completion_puzzle_user"),
        Index("idx_completion_user", "user_id", "completed"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    puzzle_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    liked: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    time_taken: Mapped[float | None] = mapped_column(Float, nullable=True)
    components_used: Mapped[int | None] = mapped_column(Integer, nullable=True)
    nands_used: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty_rating: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
