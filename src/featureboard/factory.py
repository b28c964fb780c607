"""Card store factory.

Provides a factory function to get the appropriate card store based on
configuration (PostgreSQL, or an in-memory demo board).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from featureboard.board.ordering import Card
from featureboard.config import get_settings

if TYPE_CHECKING:
    from uuid import UUID

    from featureboard.board.store import CardStore, InMemoryCardStore


# Cached instances so every page shares one store (and one read cache)
_store_instance: CardStore | None = None

_DEMO_FEATURES: tuple[tuple[str, str], ...] = (
    ("inbox", "Export roadmap as markdown"),
    ("inbox", "Share read-only board link"),
    ("discovery", "Interview churned customers"),
    ("backlog", "Bulk archive initiatives"),
    ("backlog", "Keyboard shortcuts for board"),
    ("design", "Hypothesis scoring model"),
    ("design", "Track colour palette"),
    ("development", "Strategy notes autosave"),
    ("done", "Metric tag input"),
)


def seed_demo_board(store: InMemoryCardStore, owner_id: UUID) -> None:
    """Fill ``store`` with a small dense board for ``owner_id``."""
    positions: dict[str, int] = {}
    cards: list[Card] = []
    for index, (column, title) in enumerate(_DEMO_FEATURES):
        position = positions.get(column, 0)
        positions[column] = position + 1
        cards.append(
            Card(
                id=f"demo-{index:02d}",
                column=column,
                position=position,
                payload={"title": title, "description": ""},
            )
        )
    store.seed(owner_id, cards)


def get_card_store() -> CardStore:
    """Get the card store for this process.

    If DEV__MEMORY_STORE=true or no DATABASE__URL is configured, returns an
    in-memory store seeded with a demo board for the default owner.
    Otherwise returns the PostgreSQL-backed store.
    """
    global _store_instance  # noqa: PLW0603
    if _store_instance is not None:
        return _store_instance

    settings = get_settings()
    if settings.dev.memory_store or not settings.database.url:
        from featureboard.board.store import InMemoryCardStore

        memory_store = InMemoryCardStore()
        seed_demo_board(memory_store, settings.app.default_owner_id)
        _store_instance = memory_store
    else:
        from featureboard.db.store import DatabaseCardStore

        _store_instance = DatabaseCardStore()
    return _store_instance


def clear_store_cache() -> None:
    """Clear the configuration and store caches (for tests)."""
    global _store_instance  # noqa: PLW0603
    get_settings.cache_clear()
    _store_instance = None
