"""Commit engine: turns a finished drag into persisted position updates.

Pipeline for one release::

    plan (diff candidate vs snapshot)
      -> optimistic apply to the local cache
      -> update_many on the store
      -> on any failed row: restore snapshot, notify once
      -> always: invalidate + reconciliation re-fetch

The batch is not transactional at the store. One failed row fails the
whole batch for UI purposes; the re-fetch repairs any partial-write skew.
Once ``update_many`` has been awaited there is no abort: it runs to
completion or failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from featureboard.board.errors import BoardError, StaleSnapshotError
from featureboard.board.preview import project_move
from featureboard.board.store import PositionUpdate, UpdateResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from uuid import UUID

    from featureboard.board.cache import BoardCache
    from featureboard.board.ordering import Snapshot
    from featureboard.board.session import DragSession, DragTarget
    from featureboard.board.store import CardStore

logger = logging.getLogger(__name__)


class CommitStatus(StrEnum):
    NOOP = "noop"
    COMMITTED = "committed"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class CommitPlan:
    snapshot: Snapshot
    candidate: Snapshot
    updates: tuple[PositionUpdate, ...]

    @property
    def is_empty(self) -> bool:
        return not self.updates


@dataclass(frozen=True, slots=True)
class CommitResult:
    status: CommitStatus
    updates: tuple[PositionUpdate, ...] = ()
    error: str | None = None


def diff_updates(snapshot: Snapshot, candidate: Snapshot) -> tuple[PositionUpdate, ...]:
    """One update per card whose position or column differs.

    ``column`` is only filled in for cards that changed lane.
    """
    before = {card.id: card for card in snapshot}
    updates: list[PositionUpdate] = []
    for card in candidate:
        old = before.get(card.id)
        if old is None:
            continue
        moved_lane = card.column != old.column
        if moved_lane or card.position != old.position:
            updates.append(
                PositionUpdate(
                    id=card.id,
                    position=card.position,
                    column=card.column if moved_lane else None,
                )
            )
    return tuple(updates)


class CommitEngine:
    """Plans, applies and persists drag commits for one board owner.

    ``on_rollback`` runs just before a failed batch restores its snapshot,
    so the owner can drop any drag that was started on top of the
    optimistic state.
    """

    def __init__(
        self,
        store: CardStore,
        cache: BoardCache,
        owner_id: UUID,
        *,
        notify: Callable[[str], None] | None = None,
        on_settled: Callable[[], Awaitable[None]] | None = None,
        on_rollback: Callable[[], None] | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._owner_id = owner_id
        self._notify = notify
        self._on_settled = on_settled
        self._on_rollback = on_rollback

    def plan(
        self,
        session: DragSession,
        target: DragTarget | None,
        final_order: Sequence[str] | None = None,
    ) -> CommitPlan:
        """Diff the dropped state against the drag snapshot.

        Raises:
            StaleSnapshotError: If the session holds no snapshot.
            CardNotFoundError: If the dragged or target card is missing.
            PositionOutOfRangeError: If a move index is out of range.
        """
        snapshot = session.snapshot
        card_id = session.card_id
        if card_id is None:
            raise StaleSnapshotError("Drag session has no dragged card")

        candidate = project_move(
            snapshot, card_id, target, live_reorder=True, final_order=final_order
        )
        return CommitPlan(
            snapshot=snapshot,
            candidate=candidate,
            updates=diff_updates(snapshot, candidate),
        )

    def apply_optimistic(self, plan: CommitPlan) -> None:
        self._cache.replace(plan.candidate)

    async def commit(
        self,
        session: DragSession,
        target: DragTarget | None,
        final_order: Sequence[str] | None = None,
    ) -> CommitResult:
        """Run the full release pipeline for an ACTIVE session.

        The session is back in IDLE before the store write is awaited, so
        a new drag may start while this batch is in flight.
        """
        if not session.is_active or not session.has_snapshot():
            logger.error(
                "Commit fired without a live drag snapshot (phase=%s)", session.phase
            )
            session.abort()
            return CommitResult(CommitStatus.ABORTED, error="stale snapshot")

        session.begin_commit()
        try:
            plan = self.plan(session, target, final_order)
        except BoardError as exc:
            logger.warning("Commit aborted for card %s: %s", session.card_id, exc)
            snapshot = session.snapshot
            session.abort()
            self._cache.replace(snapshot)
            return CommitResult(CommitStatus.ABORTED, error=str(exc))

        # Listeners re-render on replace, so the session is idle first.
        if plan.is_empty:
            session.finish()
            self._cache.replace(plan.snapshot)
            return CommitResult(CommitStatus.NOOP)

        session.finish()
        self.apply_optimistic(plan)
        logger.info(
            "Committing drag: %d row update(s) for owner %s",
            len(plan.updates),
            self._owner_id,
        )
        return await self.dispatch(plan)

    async def dispatch(self, plan: CommitPlan) -> CommitResult:
        """Persist ``plan.updates``, rolling back the cache on any failure."""
        try:
            result = await self._store.update_many(plan.updates)
        except Exception as exc:
            logger.exception("Store rejected drag batch")
            result = UpdateResult(
                failed_ids=tuple(update.id for update in plan.updates),
                errors=(str(exc),),
            )

        if result.ok:
            outcome = CommitResult(CommitStatus.COMMITTED, updates=plan.updates)
        else:
            logger.warning(
                "Drag batch failed for %d row(s): %s",
                len(result.failed_ids),
                ", ".join(result.failed_ids),
            )
            if self._on_rollback is not None:
                self._on_rollback()
            self._cache.replace(plan.snapshot)
            error = result.errors[0] if result.errors else "update failed"
            if self._notify is not None:
                self._notify(f"Error moving feature: {error}")
            outcome = CommitResult(CommitStatus.FAILED, updates=plan.updates, error=error)

        await self._settle()
        return outcome

    async def _settle(self) -> None:
        self._store.invalidate(self._owner_id)
        if self._on_settled is None:
            return
        try:
            await self._on_settled()
        except Exception:
            logger.exception("Reconciliation re-fetch failed for owner %s", self._owner_id)
