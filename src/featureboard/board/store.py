"""Card store interface used by the board core, plus an in-memory double.

``DatabaseCardStore`` (featureboard.db.store) and ``InMemoryCardStore``
both implement ``CardStore`` and can be used interchangeably.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from featureboard.board.ordering import Card

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PositionUpdate:
    """One row write produced by a commit.

    ``column`` is only set when the card changes lane.
    """

    id: str
    position: int
    column: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Outcome of an ``update_many`` batch.

    Rows are written independently, so some may succeed while others fail.
    """

    failed_ids: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed_ids


class CardStore(Protocol):
    """External store consumed by the board core."""

    async def fetch_all(self, owner_id: UUID) -> list[Card]:
        """Read every card belonging to ``owner_id``, in no particular order."""
        ...

    async def update_many(self, updates: Sequence[PositionUpdate]) -> UpdateResult:
        """Apply position/column updates as independent per-row writes."""
        ...

    def invalidate(self, owner_id: UUID) -> None:
        """Mark ``owner_id``'s cached data stale so the next read hits the store."""
        ...


@dataclass
class InMemoryCardStore:
    """Dict-backed ``CardStore`` for tests and the demo board.

    Failure injection:
        - ``fail_ids``: row writes for these ids fail, others still apply.
        - ``fail_all``: every row write in the next batches fails.

    Calls are recorded on ``batches`` and ``invalidated`` for assertions.
    """

    cards: dict[UUID, dict[str, Card]] = field(default_factory=dict)
    fail_ids: set[str] = field(default_factory=set)
    fail_all: bool = False
    batches: list[tuple[PositionUpdate, ...]] = field(default_factory=list)
    invalidated: list[UUID] = field(default_factory=list)
    fetch_count: int = 0

    def seed(self, owner_id: UUID, cards: Iterable[Card]) -> None:
        """Replace ``owner_id``'s rows with ``cards``."""
        self.cards[owner_id] = {card.id: card for card in cards}

    def _owner_of(self, card_id: str) -> UUID | None:
        for owner_id, rows in self.cards.items():
            if card_id in rows:
                return owner_id
        return None

    async def fetch_all(self, owner_id: UUID) -> list[Card]:
        self.fetch_count += 1
        return list(self.cards.get(owner_id, {}).values())

    async def update_many(self, updates: Sequence[PositionUpdate]) -> UpdateResult:
        self.batches.append(tuple(updates))
        failed: list[str] = []
        errors: list[str] = []
        for update in updates:
            owner_id = self._owner_of(update.id)
            if self.fail_all or update.id in self.fail_ids or owner_id is None:
                failed.append(update.id)
                errors.append(f"write rejected for {update.id}")
                continue
            row = self.cards[owner_id][update.id]
            self.cards[owner_id][update.id] = replace(
                row,
                position=update.position,
                column=update.column if update.column is not None else row.column,
            )
        if failed:
            logger.warning("In-memory store rejected %d of %d rows", len(failed), len(updates))
        return UpdateResult(failed_ids=tuple(failed), errors=tuple(errors))

    def invalidate(self, owner_id: UUID) -> None:
        self.invalidated.append(owner_id)
