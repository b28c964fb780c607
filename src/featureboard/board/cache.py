"""Authoritative local cache of a board's cards.

Owned by one ``BoardController`` and passed explicitly to the commit engine;
there is no module-level shared state. The cache mirrors the store after a
fetch, and holds optimistic state between a commit and its reconciliation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from featureboard.board.ordering import group_by_column

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from featureboard.board.ordering import Card, Snapshot

logger = logging.getLogger(__name__)


class BoardCache:
    """Immutable-snapshot card cache.

    Each write replaces the whole card tuple, so snapshots handed out
    earlier are never mutated underneath their holders. Listeners are
    called after every replace (the page uses this to re-render).
    """

    __slots__ = ("_cards", "_listeners", "_version")

    def __init__(self, cards: Iterable[Card] = ()) -> None:
        self._cards: Snapshot = tuple(cards)
        self._version = 0
        self._listeners: list[Callable[[], None]] = []

    @property
    def version(self) -> int:
        """Incremented on every replace."""
        return self._version

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> Snapshot:
        return self._cards

    def replace(self, cards: Iterable[Card]) -> None:
        self._cards = tuple(cards)
        self._version += 1
        logger.debug("Cache replaced: version=%d cards=%d", self._version, len(self._cards))
        for listener in self._listeners:
            listener()

    def get(self, card_id: str) -> Card | None:
        return next((card for card in self._cards if card.id == card_id), None)

    def grouped(self, columns: Sequence[str]) -> dict[str, list[Card]]:
        """Cards bucketed per lane and sorted for rendering."""
        return group_by_column(self._cards, columns)

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, card_id: object) -> bool:
        return any(card.id == card_id for card in self._cards)
