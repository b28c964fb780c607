"""Ordering model for board cards.

Pure functions over immutable ``Card`` records. A column is valid when its
cards, sorted by ``(position, id)``, carry positions exactly ``0..n-1``.

Index conventions for ``move_within_column`` follow array-move semantics:
``from_index`` and ``to_index`` are both indices into the *same* pre-move
sequence. The element is popped, then inserted at ``to_index`` of the
shortened list, so dragging item 1 onto item 0 and item 0 onto item 1 both
swap the pair.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from featureboard.board.errors import CardNotFoundError, PositionOutOfRangeError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class Card:
    """One board card as seen by the ordering core.

    ``payload`` carries title, description and foreign keys through
    untouched; nothing here reads it.
    """

    id: str
    column: str
    position: int
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)


type Snapshot = tuple[Card, ...]


def _sort_key(card: Card) -> tuple[int, str]:
    return (card.position, card.id)


def sort_column(cards: Iterable[Card], column: str) -> list[Card]:
    """Cards in ``column`` ordered by position, ties broken by id."""
    return sorted((c for c in cards if c.column == column), key=_sort_key)


def group_by_column(
    cards: Iterable[Card], columns: Sequence[str]
) -> dict[str, list[Card]]:
    """Bucket and sort cards for every lane in ``columns``.

    Every lane is present in the result, empty or not. Cards in a lane
    not listed are dropped from the grouping.
    """
    grouped: dict[str, list[Card]] = {column: [] for column in columns}
    for card in cards:
        if card.column in grouped:
            grouped[card.column].append(card)
    for bucket in grouped.values():
        bucket.sort(key=_sort_key)
    return grouped


def renumber(ordered: Sequence[Card]) -> dict[str, int]:
    """Map each card id to its index in ``ordered``."""
    return {card.id: index for index, card in enumerate(ordered)}


def index_of(ordered: Sequence[Card], card_id: str) -> int:
    """Index of ``card_id`` in ``ordered``.

    Raises:
        CardNotFoundError: If no card in the sequence has that id.
    """
    for index, card in enumerate(ordered):
        if card.id == card_id:
            return index
    raise CardNotFoundError(card_id)


def move_within_column(
    ordered: Sequence[Card], from_index: int, to_index: int
) -> list[Card]:
    """Array-move ``ordered[from_index]`` to ``to_index``.

    Raises:
        PositionOutOfRangeError: If either index is outside the sequence.
    """
    length = len(ordered)
    for index in (from_index, to_index):
        if not 0 <= index < length:
            raise PositionOutOfRangeError(index, length)
    result = list(ordered)
    result.insert(to_index, result.pop(from_index))
    return result


def move_across_columns(
    card: Card,
    source: Sequence[Card],
    target: Sequence[Card],
    insert_index: int,
    *,
    target_column: str | None = None,
) -> tuple[list[Card], list[Card]]:
    """Take ``card`` out of ``source`` and insert it into ``target``.

    ``insert_index`` is relative to the pre-move ``target``; it may equal
    ``len(target)`` to append. Cards at or after it shift down by one.
    When ``target_column`` is given the inserted card is relabelled with it.

    Raises:
        CardNotFoundError: If ``card`` is not in ``source``.
        PositionOutOfRangeError: If ``insert_index`` is outside ``0..len(target)``.
    """
    source_index = index_of(source, card.id)
    if not 0 <= insert_index <= len(target):
        raise PositionOutOfRangeError(insert_index, len(target))

    new_source = list(source)
    moved = new_source.pop(source_index)
    if target_column is not None:
        moved = replace(moved, column=target_column)

    new_target = list(target)
    new_target.insert(insert_index, moved)
    return new_source, new_target


def apply_positions(
    cards: Iterable[Card],
    positions: Mapping[str, int],
    columns: Mapping[str, str] | None = None,
) -> tuple[Card, ...]:
    """Return ``cards`` with new positions (and optionally columns) applied.

    Cards absent from both mappings come back unchanged.
    """
    columns = columns or {}
    result: list[Card] = []
    for card in cards:
        position = positions.get(card.id, card.position)
        column = columns.get(card.id, card.column)
        if position != card.position or column != card.column:
            card = replace(card, position=position, column=column)
        result.append(card)
    return tuple(result)


def density_violations(cards: Iterable[Card]) -> dict[str, list[int]]:
    """Columns whose sorted positions are not exactly ``0..n-1``.

    Returns a mapping of column to its offending position list; empty when
    every column is dense.
    """
    by_column: dict[str, list[int]] = defaultdict(list)
    for card in cards:
        by_column[card.column].append(card.position)
    return {
        column: sorted(positions)
        for column, positions in by_column.items()
        if sorted(positions) != list(range(len(positions)))
    }
