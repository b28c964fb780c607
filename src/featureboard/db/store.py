"""PostgreSQL-backed ``CardStore`` for the board controller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from featureboard.db.features import (
    create_feature,
    delete_feature,
    feature_to_card,
    get_feature_by_id,
    list_features_for_owner,
    update_feature,
    update_feature_positions,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from featureboard.board.ordering import Card
    from featureboard.board.store import PositionUpdate, UpdateResult
    from featureboard.db.models import Feature

logger = logging.getLogger(__name__)


class DatabaseCardStore:
    """``CardStore`` over the feature table.

    Reads are cached per owner until ``invalidate`` drops them, so several
    views of the same board share one query between commits. Card edits
    go through ``create``, ``update`` and ``delete`` here rather than the
    bare CRUD functions so the owner's cached cards are dropped with them.
    """

    def __init__(self) -> None:
        self._cache: dict[UUID, list[Card]] = {}

    async def fetch_all(self, owner_id: UUID) -> list[Card]:
        cached = self._cache.get(owner_id)
        if cached is not None:
            return list(cached)
        cards = [feature_to_card(f) for f in await list_features_for_owner(owner_id)]
        self._cache[owner_id] = cards
        return list(cards)

    async def update_many(self, updates: Sequence[PositionUpdate]) -> UpdateResult:
        return await update_feature_positions(updates)

    def invalidate(self, owner_id: UUID) -> None:
        if self._cache.pop(owner_id, None) is not None:
            logger.debug("Invalidated cached cards for owner %s", owner_id)

    async def create(
        self, owner_id: UUID, title: str, board_column: str, **fields: Any
    ) -> Feature:
        feature = await create_feature(owner_id, title, board_column, **fields)
        self.invalidate(owner_id)
        return feature

    async def update(self, feature_id: UUID, **fields: Any) -> Feature | None:
        feature = await update_feature(feature_id, **fields)
        if feature is not None:
            self.invalidate(feature.owner_id)
        return feature

    async def delete(self, feature_id: UUID) -> bool:
        feature = await get_feature_by_id(feature_id)
        if feature is None:
            return False
        deleted = await delete_feature(feature_id)
        self.invalidate(feature.owner_id)
        return deleted
