"""SQLModel database models for featureboard.

Only the feature table backs the board; strategy, roadmap and hypothesis
tables belong to the CRUD pages and are not modelled here.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Text
from sqlmodel import Field, SQLModel

from featureboard.board.columns import DEFAULT_COLUMNS


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def _timestamptz_column() -> Any:
    """Create a TIMESTAMP WITH TIME ZONE column for PostgreSQL."""
    return Column(DateTime(timezone=True), nullable=False)


_COLUMN_CHECK = "board_column IN ({})".format(
    ", ".join(f"'{column}'" for column in DEFAULT_COLUMNS)
)


class Feature(SQLModel, table=True):
    """A card on an owner's board.

    ``board_column`` and ``position`` are written only by the drag commit
    path (and by create/delete, which keep the column dense). Everything
    else is payload the ordering core carries through untouched.

    Attributes:
        id: Primary key UUID, auto-generated.
        owner_id: The user whose board this card is on.
        title: Card title.
        description: Free-text description.
        initiative_id: Optional linked roadmap initiative.
        track_id: Optional linked track (drives the card colour).
        board_column: Lane key, one of ``BoardColumn``.
        position: Dense 0-based rank within the lane.
        created_at: Timestamp when the feature was created.
        updated_at: Timestamp of the last write.
    """

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(index=True)
    title: str = Field(max_length=500)
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
    initiative_id: UUID | None = Field(default=None)
    track_id: UUID | None = Field(default=None)
    board_column: str = Field(max_length=32)
    position: int = Field(default=0, ge=0)
    created_at: datetime = Field(
        default_factory=_utcnow, sa_column=_timestamptz_column()
    )
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=_timestamptz_column()
    )

    __table_args__ = (
        CheckConstraint(_COLUMN_CHECK, name="ck_feature_board_column"),
        CheckConstraint("position >= 0", name="ck_feature_position_nonneg"),
        Index("ix_feature_owner_column_position", "owner_id", "board_column", "position"),
    )
