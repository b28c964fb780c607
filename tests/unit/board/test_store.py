"""Tests for the in-memory CardStore double and BoardCache."""

from __future__ import annotations

from uuid import UUID

import pytest

from featureboard.board.cache import BoardCache
from featureboard.board.columns import COLUMN_LABELS, DEFAULT_COLUMNS, BoardColumn
from featureboard.board.store import InMemoryCardStore, PositionUpdate
from tests.helpers.boards import make_board, positions
from tests.unit.conftest import OTHER_OWNER_ID, SAMPLE_OWNER_ID


class TestInMemoryCardStore:
    @pytest.mark.asyncio
    async def test_fetch_is_scoped_to_owner(
        self, memory_store: InMemoryCardStore
    ) -> None:
        memory_store.seed(SAMPLE_OWNER_ID, make_board(inbox="A"))
        memory_store.seed(OTHER_OWNER_ID, make_board(inbox="B"))

        cards = await memory_store.fetch_all(SAMPLE_OWNER_ID)

        assert [card.id for card in cards] == ["A"]
        assert await memory_store.fetch_all(UUID(int=0)) == []

    @pytest.mark.asyncio
    async def test_update_many_applies_position_and_column(
        self, memory_store: InMemoryCardStore
    ) -> None:
        memory_store.seed(SAMPLE_OWNER_ID, make_board(inbox="A B"))

        result = await memory_store.update_many(
            [PositionUpdate("B", 0, "done"), PositionUpdate("A", 0)]
        )

        assert result.ok
        stored = positions(await memory_store.fetch_all(SAMPLE_OWNER_ID))
        assert stored == {"A": ("inbox", 0), "B": ("done", 0)}

    @pytest.mark.asyncio
    async def test_failed_rows_do_not_block_others(
        self, memory_store: InMemoryCardStore
    ) -> None:
        memory_store.seed(SAMPLE_OWNER_ID, make_board(inbox="A B"))
        memory_store.fail_ids = {"A"}

        result = await memory_store.update_many(
            [PositionUpdate("A", 1), PositionUpdate("B", 0)]
        )

        assert result.failed_ids == ("A",)
        assert not result.ok
        stored = positions(await memory_store.fetch_all(SAMPLE_OWNER_ID))
        assert stored == {"A": ("inbox", 0), "B": ("inbox", 0)}

    @pytest.mark.asyncio
    async def test_unknown_id_fails(self, memory_store: InMemoryCardStore) -> None:
        result = await memory_store.update_many([PositionUpdate("ghost", 0)])
        assert result.failed_ids == ("ghost",)

    def test_invalidate_is_recorded(self, memory_store: InMemoryCardStore) -> None:
        memory_store.invalidate(SAMPLE_OWNER_ID)
        assert memory_store.invalidated == [SAMPLE_OWNER_ID]


class TestBoardCache:
    def test_replace_bumps_version_and_notifies(self) -> None:
        cache = BoardCache()
        calls: list[int] = []
        cache.subscribe(lambda: calls.append(cache.version))

        cache.replace(make_board(inbox="A"))

        assert calls == [1]
        assert "A" in cache
        assert len(cache) == 1

    def test_earlier_snapshots_are_not_mutated(self) -> None:
        cache = BoardCache(make_board(inbox="A B"))
        before = cache.snapshot()
        cache.replace(make_board(inbox="B A"))
        assert positions(before) == {"A": ("inbox", 0), "B": ("inbox", 1)}

    def test_get_and_grouped(self) -> None:
        cache = BoardCache(make_board(inbox="A", done="B"))
        assert cache.get("B") is not None
        assert cache.get("Z") is None
        grouped = cache.grouped(["inbox", "done", "backlog"])
        assert [c.id for c in grouped["done"]] == ["B"]
        assert grouped["backlog"] == []


class TestBoardColumns:
    def test_lane_order_and_keys(self) -> None:
        assert DEFAULT_COLUMNS == (
            "inbox",
            "discovery",
            "backlog",
            "design",
            "development",
            "onHold",
            "done",
            "cancelled",
        )

    def test_every_lane_has_a_label(self) -> None:
        assert set(COLUMN_LABELS) == set(BoardColumn)
        assert BoardColumn.ON_HOLD.label == "On Hold / Blocked"
