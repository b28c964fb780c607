"""Tests for the commit pipeline: plan, optimistic apply, persist, reconcile.

Scenarios A-E are the canonical board moves:
- A: reorder inside backlog
- B: move to an empty lane
- C: move onto a card in another lane
- D: drop onto itself
- E: Scenario A with a failing write batch
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from featureboard.board.cache import BoardCache
from featureboard.board.commit import CommitEngine, CommitStatus, diff_updates
from featureboard.board.ordering import Snapshot
from featureboard.board.session import DragPhase, DragSession, DragTarget, TargetKind
from featureboard.board.store import InMemoryCardStore, PositionUpdate
from tests.helpers.boards import column_ids, make_board, positions
from tests.unit.conftest import SAMPLE_OWNER_ID


@dataclass
class _Harness:
    """Engine wired to an in-memory store with a reconciling re-fetch."""

    store: InMemoryCardStore
    cache: BoardCache
    session: DragSession
    engine: CommitEngine
    notices: list[str] = field(default_factory=list)


def _harness(board: Snapshot, store: InMemoryCardStore | None = None) -> _Harness:
    store = store or InMemoryCardStore()
    store.seed(SAMPLE_OWNER_ID, board)
    cache = BoardCache(board)
    notices: list[str] = []

    async def refetch() -> None:
        cache.replace(await store.fetch_all(SAMPLE_OWNER_ID))

    engine = CommitEngine(
        store, cache, SAMPLE_OWNER_ID, notify=notices.append, on_settled=refetch
    )
    return _Harness(store, cache, DragSession(), engine, notices)


def _drag(h: _Harness, card_id: str) -> None:
    h.session.start(card_id, h.cache.snapshot())


def _card(card_id: str) -> DragTarget:
    return DragTarget(TargetKind.CARD, card_id)


class TestScenarios:
    """End-to-end commits against the in-memory store."""

    @pytest.mark.asyncio
    async def test_scenario_a_reorder_within_column(self) -> None:
        h = _harness(make_board(backlog="X Y"))
        _drag(h, "Y")

        result = await h.engine.commit(h.session, _card("X"))

        assert result.status is CommitStatus.COMMITTED
        assert column_ids(h.cache.snapshot(), "backlog") == ["Y", "X"]
        stored = h.store.cards[SAMPLE_OWNER_ID]
        assert (stored["Y"].position, stored["X"].position) == (0, 1)

    @pytest.mark.asyncio
    async def test_scenario_b_move_to_empty_column(self) -> None:
        h = _harness(make_board(inbox="A", done=""))
        _drag(h, "A")

        result = await h.engine.commit(h.session, DragTarget(TargetKind.COLUMN, "done"))

        assert result.status is CommitStatus.COMMITTED
        assert result.updates == (PositionUpdate("A", 0, "done"),)
        assert positions(h.cache.snapshot()) == {"A": ("done", 0)}

    @pytest.mark.asyncio
    async def test_scenario_c_move_onto_card_in_other_column(self) -> None:
        h = _harness(make_board(design="P Q", development="R"))
        _drag(h, "P")

        result = await h.engine.commit(h.session, _card("R"))

        assert result.status is CommitStatus.COMMITTED
        assert positions(h.cache.snapshot()) == {
            "Q": ("design", 0),
            "P": ("development", 0),
            "R": ("development", 1),
        }
        assert set(result.updates) == {
            PositionUpdate("P", 0, "development"),
            PositionUpdate("Q", 0),
            PositionUpdate("R", 1),
        }

    @pytest.mark.asyncio
    async def test_scenario_d_self_drop_is_noop(self) -> None:
        board = make_board(backlog="X Y")
        h = _harness(board)
        _drag(h, "Y")

        result = await h.engine.commit(h.session, _card("Y"))

        assert result.status is CommitStatus.NOOP
        assert result.updates == ()
        assert h.store.batches == []
        assert h.store.invalidated == []
        assert h.cache.snapshot() == board

    @pytest.mark.asyncio
    async def test_scenario_e_failed_batch_rolls_back_then_reconciles(self) -> None:
        board = make_board(backlog="X Y")
        h = _harness(board)
        h.store.fail_all = True
        seen: list[dict[str, tuple[str, int]]] = []
        h.cache.subscribe(lambda: seen.append(positions(h.cache.snapshot())))
        _drag(h, "Y")

        result = await h.engine.commit(h.session, _card("X"))

        assert result.status is CommitStatus.FAILED
        # optimistic, rollback, re-fetch
        assert seen[0] == {"X": ("backlog", 1), "Y": ("backlog", 0)}
        assert seen[1] == positions(board)
        assert column_ids(h.cache.snapshot(), "backlog") == ["X", "Y"]
        assert h.store.invalidated == [SAMPLE_OWNER_ID]
        assert h.store.fetch_count == 1


class TestFailureHandling:
    """Rollback, notification and reconciliation on write failure."""

    @pytest.mark.asyncio
    async def test_notifies_exactly_once(self) -> None:
        h = _harness(make_board(design="P Q", development="R"))
        h.store.fail_all = True
        _drag(h, "P")

        await h.engine.commit(h.session, _card("R"))

        assert len(h.notices) == 1
        assert h.notices[0].startswith("Error moving feature")

    @pytest.mark.asyncio
    async def test_partial_failure_reconciles_to_server_truth(self) -> None:
        """One row lands, one fails: the re-fetch shows what the store holds."""
        h = _harness(make_board(backlog="X Y"))
        h.store.fail_ids = {"X"}
        _drag(h, "Y")

        result = await h.engine.commit(h.session, _card("X"))

        assert result.status is CommitStatus.FAILED
        assert len(h.notices) == 1
        assert positions(h.cache.snapshot()) == {
            "X": ("backlog", 0),
            "Y": ("backlog", 0),
        }

    @pytest.mark.asyncio
    async def test_store_exception_counts_as_failure(self) -> None:
        class _ExplodingStore(InMemoryCardStore):
            async def update_many(self, updates):  # type: ignore[override]
                raise RuntimeError("connection reset")

        board = make_board(backlog="X Y")
        h = _harness(board, _ExplodingStore())
        _drag(h, "Y")

        result = await h.engine.commit(h.session, _card("X"))

        assert result.status is CommitStatus.FAILED
        assert result.error == "connection reset"
        assert h.notices == ["Error moving feature: connection reset"]
        assert h.cache.snapshot() == board
        assert h.store.invalidated == [SAMPLE_OWNER_ID]

    @pytest.mark.asyncio
    async def test_refetch_failure_is_logged_not_raised(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        store = InMemoryCardStore()
        store.seed(SAMPLE_OWNER_ID, make_board(backlog="X Y"))
        cache = BoardCache(make_board(backlog="X Y"))

        async def broken_refetch() -> None:
            raise RuntimeError("store offline")

        engine = CommitEngine(store, cache, SAMPLE_OWNER_ID, on_settled=broken_refetch)
        session = DragSession()
        session.start("Y", cache.snapshot())

        result = await engine.commit(session, _card("X"))

        assert result.status is CommitStatus.COMMITTED
        assert "Reconciliation re-fetch failed" in caplog.text


class TestAborts:
    """Commits that never reach the store."""

    @pytest.mark.asyncio
    async def test_commit_without_drag_is_aborted(self) -> None:
        h = _harness(make_board(backlog="X Y"))

        result = await h.engine.commit(h.session, _card("X"))

        assert result.status is CommitStatus.ABORTED
        assert result.error == "stale snapshot"
        assert h.store.batches == []
        assert h.session.phase is DragPhase.IDLE

    @pytest.mark.asyncio
    async def test_unknown_target_aborts_and_restores(self) -> None:
        board = make_board(backlog="X Y")
        h = _harness(board)
        _drag(h, "Y")
        h.cache.replace(make_board(backlog="Y X"))  # a stale preview

        result = await h.engine.commit(h.session, _card("ghost"))

        assert result.status is CommitStatus.ABORTED
        assert h.cache.snapshot() == board
        assert h.store.batches == []
        assert h.session.phase is DragPhase.IDLE

    @pytest.mark.asyncio
    async def test_mismatched_final_order_aborts(self) -> None:
        h = _harness(make_board(backlog="X Y Z"))
        _drag(h, "Y")

        result = await h.engine.commit(h.session, _card("X"), ["Y", "X"])

        assert result.status is CommitStatus.ABORTED
        assert h.store.batches == []


class TestUpdateRecords:
    """Only cards that actually moved are written."""

    @pytest.mark.asyncio
    async def test_untouched_columns_not_written(self) -> None:
        h = _harness(make_board(inbox="A B", backlog="X Y", done="D"))
        _drag(h, "Y")

        result = await h.engine.commit(h.session, _card("X"))

        assert {update.id for update in result.updates} == {"X", "Y"}
        assert all(update.column is None for update in result.updates)

    @pytest.mark.asyncio
    async def test_session_idle_before_write_completes(self) -> None:
        phases: list[DragPhase] = []

        class _ObservingStore(InMemoryCardStore):
            async def update_many(self, updates):  # type: ignore[override]
                phases.append(h.session.phase)
                return await super().update_many(updates)

        h = _harness(make_board(backlog="X Y"), _ObservingStore())
        _drag(h, "Y")

        await h.engine.commit(h.session, _card("X"))

        assert phases == [DragPhase.IDLE]

    def test_diff_of_identical_sets_is_empty(self) -> None:
        board = make_board(backlog="X Y", done="Z")
        assert diff_updates(board, board) == ()

    @pytest.mark.asyncio
    async def test_repeating_a_commit_is_a_noop(self) -> None:
        h = _harness(make_board(backlog="X Y"))
        _drag(h, "Y")
        await h.engine.commit(h.session, _card("X"))
        batches = len(h.store.batches)

        # Y is now first; dropping it before X again changes nothing
        _drag(h, "Y")
        result = await h.engine.commit(h.session, _card("Y"))

        assert result.status is CommitStatus.NOOP
        assert len(h.store.batches) == batches
