"""Exceptions raised by the board ordering core.

Invalid drop targets (self-drop, drop outside the board) are deliberately
not represented here: they revert silently and never raise.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base class for board ordering errors."""


class DragStateError(BoardError):
    """A drag transition was requested from the wrong session phase."""


class StaleSnapshotError(BoardError):
    """A commit fired without a drag snapshot to diff against."""


class CardNotFoundError(BoardError):
    """The dragged or target card is not present in the snapshot."""

    def __init__(self, card_id: str) -> None:
        self.card_id = card_id
        super().__init__(f"Card {card_id!r} not found in drag snapshot")


class PositionOutOfRangeError(BoardError, IndexError):
    """A move index falls outside the column sequence it refers to."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(f"Index {index} out of range for column of {length} cards")
