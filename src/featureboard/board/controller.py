"""Board controller: the seam between UI input and the ordering core.

Owns the authoritative card cache for one owner's board, the drag session,
and the preview/commit engines. The rendering layer reads ``columns()`` and
drives the four drag entry points (or the raw pointer path, which applies
the activation thresholds first).

A server refresh that lands mid-drag is held back until the drag ends:
a cancel restores it instead of the snapshot, and a commit supersedes it
with its own reconciliation re-fetch.

A drag may start while an earlier batch is still being written, so its
snapshot holds unconfirmed positions. Its release waits for that write to
settle, and if the write fails the drag is abandoned rather than
committed against positions the store never accepted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from featureboard.board.activation import ActivationConstraint, ActivationGate
from featureboard.board.cache import BoardCache
from featureboard.board.columns import DEFAULT_COLUMNS
from featureboard.board.commit import CommitEngine, CommitResult, CommitStatus
from featureboard.board.preview import PreviewEngine
from featureboard.board.session import DragPhase, DragSession, DragTarget, TargetKind
from featureboard.config import BoardConfig

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from featureboard.board.ordering import Card, Snapshot
    from featureboard.board.store import CardStore

logger = logging.getLogger(__name__)


class BoardController:
    """Drag-and-reorder controller for a single board view."""

    def __init__(
        self,
        store: CardStore,
        owner_id: UUID,
        *,
        columns: Sequence[str] = DEFAULT_COLUMNS,
        config: BoardConfig | None = None,
        read_only: bool = False,
        mobile: bool = False,
        notify: Callable[[str], None] | None = None,
        on_change: Callable[[], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._owner_id = owner_id
        self._columns = tuple(columns)
        self._config = config or BoardConfig()
        self._read_only = read_only
        self._mobile = mobile
        self._cache = BoardCache()
        self._on_change = on_change
        if on_change is not None:
            self._cache.subscribe(on_change)
        self._session = DragSession()
        self._preview = PreviewEngine(live_reorder=self._config.live_reorder_preview)
        self._engine = CommitEngine(
            store,
            self._cache,
            owner_id,
            notify=notify,
            on_settled=self.refresh,
            on_rollback=self._drop_stale_drag,
        )
        self._gate = ActivationGate(self._constraint(), clock)
        self._pending_refresh: Snapshot | None = None
        self._writes_in_flight = 0
        self._writes_settled = asyncio.Event()
        self._writes_settled.set()

    # -------------------- state --------------------
    @property
    def owner_id(self) -> UUID:
        return self._owner_id

    @property
    def read_only(self) -> bool:
        return self._read_only

    @read_only.setter
    def read_only(self, value: bool) -> None:
        self._read_only = value
        self._gate.constraint = self._constraint()
        if value:
            self._gate.release()

    @property
    def phase(self) -> DragPhase:
        return self._session.phase

    @property
    def dragged_card_id(self) -> str | None:
        return self._session.card_id

    @property
    def cards(self) -> Snapshot:
        return self._cache.snapshot()

    def columns(self) -> dict[str, list[Card]]:
        """Per-lane card lists in render order."""
        return self._cache.grouped(self._columns)

    def _constraint(self) -> ActivationConstraint:
        return ActivationConstraint.from_config(
            self._config, read_only=self._read_only, mobile=self._mobile
        )

    # -------------------- store sync --------------------
    async def refresh(self) -> None:
        """Re-read the owner's cards from the store into the cache."""
        cards = tuple(await self._store.fetch_all(self._owner_id))
        if self._session.phase is not DragPhase.IDLE:
            logger.debug("Refresh landed mid-drag; deferring %d cards", len(cards))
            self._pending_refresh = cards
            return
        self._cache.replace(cards)

    def resolve_target(self, target_id: str | None) -> DragTarget | None:
        """Classify a raw drop id as a card, a column, or nothing."""
        if target_id is None:
            return None
        known = self._session.snapshot if self._session.has_snapshot() else self.cards
        if any(card.id == target_id for card in known):
            return DragTarget(TargetKind.CARD, target_id)
        if target_id in self._columns:
            return DragTarget(TargetKind.COLUMN, target_id)
        return None

    # -------------------- drag entry points --------------------
    def on_drag_start(self, card_id: str) -> bool:
        """Begin dragging ``card_id``. Returns False if the drag is refused."""
        if self._read_only:
            return False
        if self._session.phase is not DragPhase.IDLE:
            logger.debug("Drag start for %s ignored while %s", card_id, self._session.phase)
            return False
        if card_id not in self._cache:
            logger.warning("Drag start for unknown card %s", card_id)
            return False
        self._session.start(card_id, self._cache.snapshot())
        if self._on_change is not None:
            self._on_change()
        return True

    def on_drag_over(self, target_id: str | None) -> bool:
        """Update the live preview. Returns True if the visible state changed."""
        if not self._session.is_active:
            return False
        candidate = self._preview.preview(self._session, self.resolve_target(target_id))
        if candidate is None or candidate == self._cache.snapshot():
            return False
        self._cache.replace(candidate)
        return True

    async def on_drag_end(
        self, target_id: str | None, final_order: Sequence[str] | None = None
    ) -> CommitResult:
        """Release the drag over ``target_id`` and commit the result.

        Args:
            target_id: Card or column id under the pointer, or None.
            final_order: Optional ids of the dragged card's column in the
                order the rendering layer shows them (same-column drops).
        """
        self._gate.release()
        if not self._session.is_active:
            return CommitResult(CommitStatus.NOOP)

        if self._writes_in_flight:
            logger.debug("Release waits for %d earlier write(s)", self._writes_in_flight)
            await self._writes_settled.wait()
            if not self._session.is_active:
                return CommitResult(
                    CommitStatus.ABORTED, error="earlier move was rolled back"
                )

        target = self.resolve_target(target_id)
        pending, self._pending_refresh = self._pending_refresh, None
        self._writes_in_flight += 1
        self._writes_settled.clear()
        try:
            result = await self._engine.commit(self._session, target, final_order)
        finally:
            self._writes_in_flight -= 1
            if not self._writes_in_flight:
                self._writes_settled.set()
        if pending is not None and result.status in (
            CommitStatus.NOOP,
            CommitStatus.ABORTED,
        ):
            self._cache.replace(pending)
        return result

    def _drop_stale_drag(self) -> None:
        """Abandon a drag whose snapshot includes a batch that just failed."""
        if self._session.phase is DragPhase.IDLE:
            return
        logger.warning(
            "Abandoning drag of %s: it started on a move that was rolled back",
            self._session.card_id,
        )
        self._session.abort()
        self._gate.release()
        self._pending_refresh = None

    def on_drag_cancel(self) -> None:
        """Abandon the drag and restore the pre-drag state."""
        self._gate.release()
        if self._session.phase is not DragPhase.ACTIVE:
            return
        snapshot = self._session.cancel()
        pending, self._pending_refresh = self._pending_refresh, None
        restore = pending if pending is not None else snapshot
        if restore is not None:
            self._cache.replace(restore)

    # -------------------- raw pointer path --------------------
    def pointer_down(
        self, card_id: str, x: float, y: float, pointer_type: str = "mouse"
    ) -> None:
        if self._read_only or self._session.phase is not DragPhase.IDLE:
            return
        self._gate.press(card_id, x, y, pointer_type)

    def pointer_move(self, x: float, y: float, target_id: str | None = None) -> bool:
        """Feed a pointer position. Returns True if the visible state changed."""
        if self._session.is_active:
            return self.on_drag_over(target_id)
        card_id = self._gate.move(x, y)
        if card_id is None or not self.on_drag_start(card_id):
            return False
        if target_id is not None:
            self.on_drag_over(target_id)
        return True

    async def pointer_up(
        self, target_id: str | None, final_order: Sequence[str] | None = None
    ) -> CommitResult | None:
        """Release the pointer. Returns None if no drag had activated."""
        if not self._session.is_active:
            self._gate.release()
            return None
        return await self.on_drag_end(target_id, final_order)
