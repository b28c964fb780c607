"""The fixed set of board lanes.

Values are the raw ``board_column`` keys stored on each feature row; the
labels are what column headers show. The ordering core only ever sees
plain strings, so any other lane sequence works just as well.
"""

from __future__ import annotations

from enum import StrEnum


class BoardColumn(StrEnum):
    """Board lanes in display order."""

    INBOX = "inbox"
    DISCOVERY = "discovery"
    BACKLOG = "backlog"
    DESIGN = "design"
    DEVELOPMENT = "development"
    ON_HOLD = "onHold"
    DONE = "done"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return COLUMN_LABELS[self]


COLUMN_LABELS: dict[BoardColumn, str] = {
    BoardColumn.INBOX: "Inbox",
    BoardColumn.DISCOVERY: "Discovery",
    BoardColumn.BACKLOG: "Backlog",
    BoardColumn.DESIGN: "Design & Analysis",
    BoardColumn.DEVELOPMENT: "Development & Testing",
    BoardColumn.ON_HOLD: "On Hold / Blocked",
    BoardColumn.DONE: "Done",
    BoardColumn.CANCELLED: "Cancelled",
}

DEFAULT_COLUMNS: tuple[str, ...] = tuple(column.value for column in BoardColumn)
