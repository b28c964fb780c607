"""Kanban board page.

Routes:
- / - The default owner's board, draggable
- /shared/{owner_id} - Read-only view of another owner's board

Drag input is raw pointer events on the board container, fed to the
``BoardController`` which applies activation thresholds, previews and
commits. Drop targets are hit-tested in the browser against element rects
measured on pointer-down, i.e. against the pre-drag layout. The preview is
always derived from the pre-drag snapshot too, so a re-rendered preview
never shifts the target out from under a stationary pointer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import UUID

from nicegui import ui

from featureboard.board.columns import BoardColumn
from featureboard.board.controller import BoardController
from featureboard.config import get_settings
from featureboard.factory import get_card_store

if TYPE_CHECKING:
    from nicegui.events import GenericEventArguments, KeyEventArguments

    from featureboard.board.ordering import Card

logger = logging.getLogger(__name__)

_DESCRIPTION_PREVIEW_CHARS = 120

# Measure every drop target once, on press, capture the pointer so moves
# outside the board still arrive, then emit the pressed card.
_PRESS_JS = """(e) => {
  const card = e.target.closest('[data-card-id]');
  if (!card) return;
  window.featureboardDropRects = Array.from(
    document.querySelectorAll('[data-drop-id]')
  ).map((el) => ({
    id: el.dataset.dropId,
    card: el.hasAttribute('data-card-id'),
    rect: el.getBoundingClientRect(),
  }));
  e.currentTarget.setPointerCapture(e.pointerId);
  emit(card.dataset.cardId, e.clientX, e.clientY, e.pointerType);
}"""

# Resolve the drop target from the rects measured on press; cards win over
# the column they sit in.
_POINTER_JS = """(e) => {
  const hits = (window.featureboardDropRects || []).filter((d) =>
    e.clientX >= d.rect.left && e.clientX <= d.rect.right &&
    e.clientY >= d.rect.top && e.clientY <= d.rect.bottom);
  const hit = hits.find((d) => d.card) || hits[0];
  emit(e.clientX, e.clientY, hit ? hit.id : null);
}"""


def _parse_press_args(args: Any) -> tuple[str, float, float, str] | None:
    """Parse ``(card_id, x, y, pointer_type)`` emitted by the press handler."""
    if not isinstance(args, (list, tuple)) or len(args) < 4:
        return None
    card_id, x, y, pointer_type = args[:4]
    if not isinstance(card_id, str) or not card_id:
        return None
    try:
        return card_id, float(x), float(y), str(pointer_type or "mouse")
    except (TypeError, ValueError):
        return None


def _parse_pointer_args(args: Any) -> tuple[float, float, str | None] | None:
    """Parse ``(x, y, drop_id)`` emitted by the move/release handlers."""
    if not isinstance(args, (list, tuple)) or len(args) < 3:
        return None
    x, y, drop_id = args[:3]
    try:
        return float(x), float(y), drop_id if isinstance(drop_id, str) else None
    except (TypeError, ValueError):
        return None


def _is_mobile(user_agent: str) -> bool:
    return "Mobi" in user_agent or "Android" in user_agent


def _card_text(card: Card) -> tuple[str, str | None]:
    """Title and a shortened description (None when blank) for a card face."""
    title = str(card.payload.get("title") or "")
    description = str(card.payload.get("description") or "").strip()
    if not description:
        return title, None
    if len(description) > _DESCRIPTION_PREVIEW_CHARS:
        description = description[: _DESCRIPTION_PREVIEW_CHARS - 3].rstrip() + "..."
    return title, description


def _build_card(card: Card, *, dragged: bool, read_only: bool) -> None:
    title, description = _card_text(card)
    opacity = "0.5" if dragged else "1"
    with (
        ui.card()
        .classes("w-full select-none" + ("" if read_only else " cursor-grab"))
        .style(f"opacity: {opacity};")
        .props(
            f'data-testid="board-card"'
            f' data-card-id="{card.id}"'
            f' data-drop-id="{card.id}"'
        )
    ):
        ui.label(title).classes("font-medium text-sm break-words")
        if description:
            ui.label(description).classes("text-xs text-gray-500 break-words")


def _build_column(
    column: BoardColumn, cards: list[Card], *, dragged_id: str | None, read_only: bool
) -> None:
    with (
        ui.column()
        .classes("w-80 flex-shrink-0 self-stretch")
        .props(f'data-testid="board-column" data-column="{column.value}"')
    ):
        with ui.row().classes("w-full items-center bg-grey-2 px-4 py-2 rounded-t"):
            ui.label(column.label).classes("font-semibold text-sm")
            ui.badge(str(len(cards))).props("color=grey-6")
        with (
            ui.column()
            .classes("w-full flex-grow min-h-24 p-2 gap-2 border rounded-b")
            .props(f'data-drop-id="{column.value}"')
        ):
            for card in cards:
                _build_card(card, dragged=card.id == dragged_id, read_only=read_only)
            if not cards:
                ui.label("No features").classes("text-xs text-gray-400 italic p-2")


async def _render_board(owner_id: UUID, *, read_only: bool) -> None:
    settings = get_settings()
    user_agent = ui.context.client.request.headers.get("user-agent", "")

    @ui.refreshable
    def board_view() -> None:
        grouped = controller.columns()
        for column in BoardColumn:
            _build_column(
                column,
                grouped[column.value],
                dragged_id=controller.dragged_card_id,
                read_only=read_only,
            )

    controller = BoardController(
        get_card_store(),
        owner_id,
        config=settings.board,
        read_only=read_only,
        mobile=_is_mobile(user_agent),
        notify=lambda message: ui.notify(message, type="negative"),
        on_change=board_view.refresh,
    )
    await controller.refresh()

    def handle_press(e: GenericEventArguments) -> None:
        parsed = _parse_press_args(e.args)
        if parsed is None:
            return
        card_id, x, y, pointer_type = parsed
        controller.pointer_down(card_id, x, y, pointer_type)

    def handle_move(e: GenericEventArguments) -> None:
        parsed = _parse_pointer_args(e.args)
        if parsed is None:
            return
        x, y, drop_id = parsed
        controller.pointer_move(x, y, drop_id)

    async def handle_release(e: GenericEventArguments) -> None:
        parsed = _parse_pointer_args(e.args)
        drop_id = parsed[2] if parsed is not None else None
        result = await controller.pointer_up(drop_id)
        if result is not None:
            logger.info("Drop on %s: %s", drop_id, result.status)

    def handle_cancel() -> None:
        controller.on_drag_cancel()

    def handle_key(e: KeyEventArguments) -> None:
        if e.action.keydown and e.key.name == "Escape":
            handle_cancel()

    ui.keyboard(on_key=handle_key)

    if read_only:
        ui.label("Viewing a shared board (read only)").classes("text-sm text-grey-7 px-4")

    board = (
        ui.row()
        .classes("w-full overflow-x-auto gap-4 p-4 flex-nowrap items-stretch")
        .props('data-testid="board-columns"')
    )
    board.on("pointerdown", handle_press, js_handler=_PRESS_JS)
    board.on("pointermove", handle_move, throttle=0.05, js_handler=_POINTER_JS)
    board.on("pointerup", handle_release, js_handler=_POINTER_JS)
    board.on("pointercancel", handle_cancel)

    with board:
        board_view()


@ui.page("/")
async def board_page() -> None:
    """The default owner's board."""
    await _render_board(get_settings().app.default_owner_id, read_only=False)


@ui.page("/shared/{owner_id}")
async def shared_board_page(owner_id: str) -> None:
    """Read-only view of another owner's board."""
    try:
        owner = UUID(owner_id)
    except ValueError:
        ui.label("Board not found").classes("text-h5 text-red-500")
        return
    await _render_board(owner, read_only=True)
