"""Kanban drag-and-reorder core.

Ordering model, drag session, preview and commit engines, and the board
controller that wires them to UI input. No module here touches the
database or NiceGUI directly; the store is passed in as a ``CardStore``.
"""

from featureboard.board.activation import ActivationConstraint, ActivationGate
from featureboard.board.cache import BoardCache
from featureboard.board.columns import COLUMN_LABELS, DEFAULT_COLUMNS, BoardColumn
from featureboard.board.commit import (
    CommitEngine,
    CommitPlan,
    CommitResult,
    CommitStatus,
    diff_updates,
)
from featureboard.board.controller import BoardController
from featureboard.board.errors import (
    BoardError,
    CardNotFoundError,
    DragStateError,
    PositionOutOfRangeError,
    StaleSnapshotError,
)
from featureboard.board.ordering import (
    Card,
    Snapshot,
    apply_positions,
    density_violations,
    group_by_column,
    move_across_columns,
    move_within_column,
    renumber,
    sort_column,
)
from featureboard.board.preview import PreviewEngine, project_move
from featureboard.board.session import DragPhase, DragSession, DragTarget, TargetKind
from featureboard.board.store import (
    CardStore,
    InMemoryCardStore,
    PositionUpdate,
    UpdateResult,
)

__all__ = [
    "COLUMN_LABELS",
    "DEFAULT_COLUMNS",
    "ActivationConstraint",
    "ActivationGate",
    "BoardCache",
    "BoardColumn",
    "BoardController",
    "BoardError",
    "Card",
    "CardNotFoundError",
    "CardStore",
    "CommitEngine",
    "CommitPlan",
    "CommitResult",
    "CommitStatus",
    "DragPhase",
    "DragSession",
    "DragStateError",
    "DragTarget",
    "InMemoryCardStore",
    "PositionOutOfRangeError",
    "PositionUpdate",
    "PreviewEngine",
    "Snapshot",
    "StaleSnapshotError",
    "TargetKind",
    "UpdateResult",
    "apply_positions",
    "density_violations",
    "diff_updates",
    "group_by_column",
    "move_across_columns",
    "move_within_column",
    "project_move",
    "renumber",
    "sort_column",
]
