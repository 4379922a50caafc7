"""
SQLAlchemy models for stored games.

One row per game. The full GameState lives in the JSON ``document``
column; ``version`` and ``phase`` are copied out for querying.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utc_now() -> datetime:
    """Generate timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class GameRecord(Base):
    """Stored game state table."""

    __tablename__ = "game_states"

    # Autoincrement key doubles as insertion order for listing
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    game_id: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    phase: Mapped[str] = mapped_column(String(32), nullable=False)

    document: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Serialized GameState",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def __repr__(self) -> str:
        return f"<GameRecord(game_id={self.game_id}, version={self.version}, phase={self.phase})>"
