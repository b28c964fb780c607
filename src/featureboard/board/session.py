"""Drag session state machine for the board.

One ``DragSession`` lives per board client. It replaces the implicit
"currently dragged card" captured by pointer callbacks with an explicit
object that holds everything a drag needs: the dragged card, the snapshot
taken at drag start, the current over-target, and the last preview
signature.

Phases::

    IDLE -> ACTIVE -> COMMITTING -> IDLE
                   -> CANCELLED  -> IDLE

A new drag cannot start while COMMITTING. That guard is advisory and
UI-level only; it says nothing about concurrent writers to the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from featureboard.board.errors import DragStateError, StaleSnapshotError

if TYPE_CHECKING:
    from featureboard.board.ordering import Snapshot

logger = logging.getLogger(__name__)


class DragPhase(StrEnum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTING = "committing"
    CANCELLED = "cancelled"


class TargetKind(StrEnum):
    CARD = "card"
    COLUMN = "column"


@dataclass(frozen=True, slots=True)
class DragTarget:
    """What the pointer is over: a card or a column."""

    kind: TargetKind
    id: str

    @property
    def signature(self) -> tuple[str, str]:
        return (self.kind.value, self.id)


class DragSession:
    """Per-client drag state.

    All session data is cleared whenever the phase returns to IDLE, so a
    snapshot never outlives the drag it was taken for.
    """

    __slots__ = ("_card_id", "_over", "_phase", "_signature", "_snapshot")

    def __init__(self) -> None:
        self._phase = DragPhase.IDLE
        self._card_id: str | None = None
        self._snapshot: Snapshot | None = None
        self._over: DragTarget | None = None
        self._signature: tuple[str, str] | None = None

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def card_id(self) -> str | None:
        """The dragged card, or None when idle."""
        return self._card_id

    @property
    def over(self) -> DragTarget | None:
        return self._over

    @property
    def is_active(self) -> bool:
        return self._phase is DragPhase.ACTIVE

    @property
    def snapshot(self) -> Snapshot:
        """The drag-start snapshot.

        Raises:
            StaleSnapshotError: If no snapshot is held.
        """
        if self._snapshot is None:
            raise StaleSnapshotError("No drag snapshot is held")
        return self._snapshot

    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    def start(self, card_id: str, snapshot: Snapshot) -> None:
        """Enter ACTIVE for ``card_id`` with the given snapshot.

        Raises:
            DragStateError: If a drag is already active or committing.
        """
        if self._phase is not DragPhase.IDLE:
            msg = f"Cannot start a drag while {self._phase.value}"
            raise DragStateError(msg)
        self._phase = DragPhase.ACTIVE
        self._card_id = card_id
        self._snapshot = snapshot
        self._over = None
        self._signature = None
        logger.debug("Drag started: card=%s cards=%d", card_id, len(snapshot))

    def hover(self, target: DragTarget | None) -> bool:
        """Record the current over-target.

        Returns:
            False when the ``(kind, id)`` signature is unchanged since the
            last call, so the caller can skip recomputing its preview.

        Raises:
            DragStateError: If no drag is active.
        """
        self._require(DragPhase.ACTIVE)
        signature = target.signature if target is not None else None
        self._over = target
        if signature == self._signature:
            return False
        self._signature = signature
        return True

    def begin_commit(self) -> None:
        """Move from ACTIVE to COMMITTING on pointer release."""
        self._require(DragPhase.ACTIVE)
        self._phase = DragPhase.COMMITTING

    def cancel(self) -> Snapshot | None:
        """Abandon the drag and return to IDLE.

        Returns:
            The snapshot to restore, or None if none was held.
        """
        if self._phase is DragPhase.IDLE:
            return None
        snapshot = self._snapshot
        self._phase = DragPhase.CANCELLED
        logger.debug("Drag cancelled: card=%s", self._card_id)
        self._reset()
        return snapshot

    def finish(self) -> None:
        """Return to IDLE after a commit has been handed off."""
        self._require(DragPhase.COMMITTING)
        self._reset()

    def abort(self) -> None:
        """Drop straight back to IDLE from any phase."""
        self._reset()

    def _require(self, phase: DragPhase) -> None:
        if self._phase is not phase:
            msg = f"Expected drag phase {phase.value}, got {self._phase.value}"
            raise DragStateError(msg)

    def _reset(self) -> None:
        self._phase = DragPhase.IDLE
        self._card_id = None
        self._snapshot = None
        self._over = None
        self._signature = None
