"""Live drag preview for the board.

Every pointer-over event recomputes the candidate card set from the drag
snapshot, never from the previous preview, so index errors cannot compound
over a long drag. Unchanged ``(kind, id)`` signatures are skipped outright.

Same-column hovers are computed analytically with ``move_within_column``
when ``live_reorder`` is on. With it off the snapshot order is emitted
unchanged and the rendering layer is expected to animate the reorder
itself; the committed order then comes from ``final_order`` at drop time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from featureboard.board.errors import (
    BoardError,
    CardNotFoundError,
    PositionOutOfRangeError,
)
from featureboard.board.ordering import (
    apply_positions,
    index_of,
    move_across_columns,
    move_within_column,
    renumber,
    sort_column,
)
from featureboard.board.session import TargetKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from featureboard.board.ordering import Card, Snapshot
    from featureboard.board.session import DragSession, DragTarget

logger = logging.getLogger(__name__)


def _find(snapshot: Snapshot, card_id: str) -> Card:
    for card in snapshot:
        if card.id == card_id:
            return card
    raise CardNotFoundError(card_id)


def _reorder_from_final(ordered: list[Card], final_order: Sequence[str]) -> list[Card]:
    """Order ``ordered`` the way the rendering layer reported it."""
    by_id = {card.id: card for card in ordered}
    if sorted(final_order) != sorted(by_id):
        msg = "Reported column order does not match the snapshot column"
        raise BoardError(msg)
    return [by_id[card_id] for card_id in final_order]


def project_move(
    snapshot: Snapshot,
    card_id: str,
    target: DragTarget | None,
    *,
    live_reorder: bool = True,
    final_order: Sequence[str] | None = None,
) -> Snapshot:
    """Candidate card set for dropping ``card_id`` on ``target``.

    Args:
        snapshot: Drag-start card set; the only input ever read.
        card_id: The dragged card.
        target: Card or column under the pointer, or None.
        live_reorder: Compute same-column moves analytically. When False a
            same-column hover returns the snapshot unchanged.
        final_order: Ids of the dragged card's column in the order the
            rendering layer shows them. Takes precedence for same-column moves.

    Returns:
        The full card set with positions and columns updated. Returns the
        snapshot itself when the move is a no-op.

    Raises:
        CardNotFoundError: If the dragged or target card is not in the snapshot.
        PositionOutOfRangeError: If a computed index is out of range.
    """
    if target is None or (target.kind is TargetKind.CARD and target.id == card_id):
        return snapshot

    dragged = _find(snapshot, card_id)
    source = sort_column(snapshot, dragged.column)

    if target.kind is TargetKind.CARD:
        over = _find(snapshot, target.id)
        target_column = over.column
    else:
        over = None
        target_column = target.id

    if target_column == dragged.column:
        if final_order is not None:
            reordered = _reorder_from_final(source, final_order)
        elif over is None or not live_reorder:
            return snapshot
        else:
            reordered = move_within_column(
                source, index_of(source, dragged.id), index_of(source, over.id)
            )
        return apply_positions(snapshot, renumber(reordered))

    destination = sort_column(snapshot, target_column)
    insert_index = (
        index_of(destination, over.id) if over is not None else len(destination)
    )
    new_source, new_destination = move_across_columns(
        dragged,
        source,
        destination,
        insert_index,
        target_column=target_column,
    )
    positions = renumber(new_source) | renumber(new_destination)
    return apply_positions(snapshot, positions, {dragged.id: target_column})


class PreviewEngine:
    """Turns pointer-over events into candidate card sets."""

    def __init__(self, *, live_reorder: bool = True) -> None:
        self.live_reorder = live_reorder

    def preview(self, session: DragSession, target: DragTarget | None) -> Snapshot | None:
        """Candidate card set for ``target``, or None if nothing changed.

        Invalid targets (self, unknown ids, no target) fall back to the
        snapshot so any earlier preview is reverted.
        """
        if not session.hover(target):
            return None

        snapshot = session.snapshot
        card_id = session.card_id
        assert card_id is not None  # ACTIVE sessions always carry one

        try:
            return project_move(
                snapshot, card_id, target, live_reorder=self.live_reorder
            )
        except (CardNotFoundError, PositionOutOfRangeError):
            logger.debug("Preview target %s not usable, reverting", target)
            return snapshot
