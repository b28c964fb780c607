"""CRUD operations for board features.

Provides async database functions for feature management. Creation and
deletion keep each lane dense; drag reordering goes through
``update_feature_positions``, which writes each row independently.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlmodel import col, func, select

from featureboard.board.columns import DEFAULT_COLUMNS
from featureboard.board.ordering import Card
from featureboard.board.store import PositionUpdate, UpdateResult
from featureboard.db.engine import get_session
from featureboard.db.models import Feature

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = logging.getLogger(__name__)

_PAYLOAD_FIELDS = ("title", "description", "initiative_id", "track_id")


class UnknownColumnError(ValueError):
    """Raised when a feature is placed in a lane the board does not have."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"Unknown board column: {column!r}")


def _check_column(column: str) -> None:
    if column not in DEFAULT_COLUMNS:
        raise UnknownColumnError(column)


def feature_to_card(feature: Feature) -> Card:
    """Project a feature row onto the ordering core's ``Card``."""
    payload: dict[str, Any] = {
        "title": feature.title,
        "description": feature.description,
        "initiative_id": str(feature.initiative_id) if feature.initiative_id else None,
        "track_id": str(feature.track_id) if feature.track_id else None,
    }
    return Card(
        id=str(feature.id),
        column=feature.board_column,
        position=feature.position,
        payload=payload,
    )


async def _next_position(session: AsyncSession, owner_id: UUID, column: str) -> int:
    result = await session.exec(
        select(func.max(Feature.position)).where(
            Feature.owner_id == owner_id, Feature.board_column == column
        )
    )
    current_max = result.one()
    return 0 if current_max is None else current_max + 1


async def _compact_column(session: AsyncSession, owner_id: UUID, column: str) -> None:
    """Renumber a lane to ``0..n-1`` in its current (position, id) order."""
    result = await session.exec(
        select(Feature)
        .where(Feature.owner_id == owner_id, Feature.board_column == column)
        .order_by(col(Feature.position), col(Feature.id))
    )
    for index, feature in enumerate(result.all()):
        if feature.position != index:
            feature.position = index
            feature.updated_at = datetime.now(UTC)
            session.add(feature)


async def create_feature(
    owner_id: UUID,
    title: str,
    board_column: str,
    *,
    description: str = "",
    initiative_id: UUID | None = None,
    track_id: UUID | None = None,
) -> Feature:
    """Create a feature at the bottom of ``board_column``.

    Raises:
        UnknownColumnError: If ``board_column`` is not a board lane.
    """
    _check_column(board_column)
    async with get_session() as session:
        feature = Feature(
            owner_id=owner_id,
            title=title,
            description=description,
            initiative_id=initiative_id,
            track_id=track_id,
            board_column=board_column,
            position=await _next_position(session, owner_id, board_column),
        )
        session.add(feature)
        await session.flush()
        await session.refresh(feature)
        return feature


async def get_feature_by_id(feature_id: UUID) -> Feature | None:
    async with get_session() as session:
        return await session.get(Feature, feature_id)


async def list_features_for_owner(owner_id: UUID) -> list[Feature]:
    """List an owner's features, ordered by lane then position."""
    async with get_session() as session:
        result = await session.exec(
            select(Feature)
            .where(Feature.owner_id == owner_id)
            .order_by(col(Feature.board_column), col(Feature.position))
        )
        return list(result.all())


async def update_feature(
    feature_id: UUID,
    *,
    board_column: str | None = None,
    **fields: Any,
) -> Feature | None:
    """Update payload fields, optionally moving the feature to another lane.

    A lane change from the edit dialog appends the feature to the bottom
    of the new lane and closes the gap it leaves behind.

    Returns:
        The updated Feature, or None if not found.

    Raises:
        ValueError: If an unknown field is passed.
        UnknownColumnError: If ``board_column`` is not a board lane.
    """
    unknown = set(fields) - set(_PAYLOAD_FIELDS)
    if unknown:
        msg = f"Cannot update feature fields: {', '.join(sorted(unknown))}"
        raise ValueError(msg)
    if board_column is not None:
        _check_column(board_column)

    async with get_session() as session:
        feature = await session.get(Feature, feature_id)
        if feature is None:
            return None
        for name, value in fields.items():
            setattr(feature, name, value)

        old_column = feature.board_column
        if board_column is not None and board_column != old_column:
            feature.position = await _next_position(
                session, feature.owner_id, board_column
            )
            feature.board_column = board_column
            session.add(feature)
            await session.flush()
            await _compact_column(session, feature.owner_id, old_column)

        feature.updated_at = datetime.now(UTC)
        session.add(feature)
        await session.flush()
        await session.refresh(feature)
        return feature


async def delete_feature(feature_id: UUID) -> bool:
    """Delete a feature and compact the lane it was in.

    Returns:
        True if deleted, False if not found.
    """
    async with get_session() as session:
        feature = await session.get(Feature, feature_id)
        if feature is None:
            return False
        owner_id, column = feature.owner_id, feature.board_column
        await session.delete(feature)
        await session.flush()
        await _compact_column(session, owner_id, column)
        return True


async def update_feature_position(update: PositionUpdate) -> bool:
    """Write one drag update in its own transaction.

    Returns:
        True if the row was updated, False if it does not exist.
    """
    if update.column is not None:
        _check_column(update.column)
    async with get_session() as session:
        feature = await session.get(Feature, UUID(update.id))
        if feature is None:
            return False
        feature.position = update.position
        if update.column is not None:
            feature.board_column = update.column
        feature.updated_at = datetime.now(UTC)
        session.add(feature)
        return True


async def update_feature_positions(updates: Sequence[PositionUpdate]) -> UpdateResult:
    """Apply a drag batch as concurrent, independent row writes.

    A failing row does not stop the others; its id is reported in the
    result instead.
    """
    outcomes = await asyncio.gather(
        *(update_feature_position(update) for update in updates),
        return_exceptions=True,
    )
    failed: list[str] = []
    errors: list[str] = []
    for update, outcome in zip(updates, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            logger.warning("Position write failed for %s: %s", update.id, outcome)
            failed.append(update.id)
            errors.append(str(outcome))
        elif not outcome:
            failed.append(update.id)
            errors.append(f"Feature {update.id} not found")
    return UpdateResult(failed_ids=tuple(failed), errors=tuple(errors))
