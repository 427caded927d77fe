# matchwidgets/src/matchwidgets/diagram_editor/controller.py

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from matchwidgets.utils.logging import get_logger

from .blocks import normalized_rect
from .model import Arrow, Block, Edge, Mode, Shape, ShapeKind, ShapeRef
from .state import EditorState

logger = get_logger(__name__)

PointerHandler = Callable[[float, float], None]


class Interaction(Enum):
    """What the current pointer gesture is doing."""
    IDLE = "idle"
    PREVIEWING = "previewing"          # sizing a new block
    DRAGGING = "dragging"              # moving an existing block
    RESIZING = "resizing"              # moving an edge of the selected block
    DRAWING_ARROW = "drawing_arrow"


class EditorController:
    """Routes pointer input to the active mode and owns the single selection.

    Pointer events go through one dispatch table keyed by Mode. In every mode
    a press on a shape selects it (block body -> drag, handle of the selected
    block -> resize). A press on empty canvas starts a block preview in
    CREATE mode, starts an arrow in ARROW mode and only deselects in EDIT
    mode.

    Events (via callback registration):
        on_selection_changed(handler): handler(ShapeRef or None)
        on_warning(handler): handler(message)
        on_blocks_changed(handler): handler()
        on_arrows_changed(handler): handler()
    """

    def __init__(self, state: EditorState, mode: Mode = Mode.CREATE) -> None:
        self.state = state
        self.mode = mode
        self.selection: Optional[ShapeRef] = None
        self.interaction = Interaction.IDLE

        # Gesture state
        self._start: Optional[Tuple[float, float]] = None
        self._drag_block_id: Optional[int] = None
        self._drag_offset: Tuple[float, float] = (0.0, 0.0)
        self._drag_orig: Optional[Tuple[float, float, float, float]] = None  # (x, y, w, h)
        self._resize_edge: Optional[Edge] = None

        # Transient previews, in display coords
        self.preview_rect: Optional[Tuple[float, float, float, float]] = None
        self.preview_arrow: Optional[Tuple[float, float, float, float]] = None

        self._selection_handlers: List[Callable[[Optional[ShapeRef]], None]] = []
        self._warning_handlers: List[Callable[[str], None]] = []
        self._blocks_changed_handlers: List[Callable[[], None]] = []
        self._arrows_changed_handlers: List[Callable[[], None]] = []

        self._dispatch: Dict[Mode, Dict[str, PointerHandler]] = {
            Mode.CREATE: {
                "down": self._create_down,
                "move": self._gesture_move,
                "up": self._gesture_up,
            },
            Mode.EDIT: {
                "down": self._edit_down,
                "move": self._gesture_move,
                "up": self._gesture_up,
            },
            Mode.ARROW: {
                "down": self._arrow_down,
                "move": self._gesture_move,
                "up": self._gesture_up,
            },
        }

        state.arrows.on_rejected(self._emit_warning)
        state.blocks.on_block_deleted(self._on_block_deleted)

    # ------------- event registration -------------

    def on_selection_changed(self, handler: Callable[[Optional[ShapeRef]], None]) -> None:
        self._selection_handlers.append(handler)

    def on_warning(self, handler: Callable[[str], None]) -> None:
        self._warning_handlers.append(handler)

    def on_blocks_changed(self, handler: Callable[[], None]) -> None:
        self._blocks_changed_handlers.append(handler)

    def on_arrows_changed(self, handler: Callable[[], None]) -> None:
        self._arrows_changed_handlers.append(handler)

    # ------------- pointer input -------------

    def pointer_down(self, x: float, y: float) -> None:
        self._dispatch[self.mode]["down"](x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self._dispatch[self.mode]["move"](x, y)

    def pointer_up(self, x: float, y: float) -> None:
        self._dispatch[self.mode]["up"](x, y)

    def set_mode(self, mode: Mode) -> None:
        """Switch mode; any gesture in progress is abandoned."""
        if mode == self.mode:
            return
        self.cancel()
        self.mode = mode
        logger.debug(f"mode -> {mode.value}")

    def cancel(self) -> None:
        """Abandon the current gesture without committing it."""
        if self.interaction in (Interaction.DRAGGING, Interaction.RESIZING):
            block = self.state.blocks.get(self._drag_block_id)
            if block is not None and self._drag_orig is not None:
                block.x, block.y, block.width, block.height = self._drag_orig
                self.state.arrows.reanchor(block.id)
                self._emit(self._blocks_changed_handlers)
        self._reset_gesture()

    def reset(self) -> None:
        """Cancel any gesture and clear the selection (e.g. after a load)."""
        self.cancel()
        self.select(None)

    # ------------- selection -------------

    @property
    def delete_affordance(self) -> Optional[ShapeKind]:
        """Which delete action the UI should offer: block, arrow or none."""
        return self.selection.kind if self.selection is not None else None

    @property
    def selected_block(self) -> Optional[Block]:
        if self.selection is None or self.selection.kind is not ShapeKind.BLOCK:
            return None
        return self.state.blocks.get(self.selection.id)

    @property
    def selected_arrow(self) -> Optional[Arrow]:
        if self.selection is None or self.selection.kind is not ShapeKind.ARROW:
            return None
        return self.state.arrows.get(self.selection.id)

    def select(self, shape: Shape | ShapeRef | None) -> None:
        """Make `shape` the only selected shape (None clears the selection)."""
        ref = shape if isinstance(shape, ShapeRef) or shape is None else ShapeRef.of(shape)
        if ref == self.selection:
            return
        self.selection = ref
        logger.debug(f"selection -> {ref}")
        self._emit(self._selection_handlers, ref)

    def delete_selected(self) -> bool:
        if self.selection is None:
            return False
        if self.selection.kind is ShapeKind.BLOCK:
            return self.delete_block(self.selection.id)
        return self.delete_arrow(self.selection.id)

    def delete_block(self, block_id: int) -> bool:
        """Delete a block with its word and arrows."""
        n_arrows = len(self.state.arrows)
        if not self.state.blocks.delete(block_id):
            return False
        self._emit(self._blocks_changed_handlers)
        if len(self.state.arrows) != n_arrows:
            self._emit(self._arrows_changed_handlers)
        return True

    def delete_arrow(self, arrow_id: int) -> bool:
        if not self.state.arrows.delete(arrow_id):
            return False
        if self.selection == ShapeRef(ShapeKind.ARROW, arrow_id):
            self.select(None)
        self._emit(self._arrows_changed_handlers)
        return True

    # ------------- hover feedback -------------

    def cursor_at(self, x: float, y: float) -> str:
        """CSS cursor for a pointer hovering at (x, y) with no button held."""
        selected = self.selected_block
        if selected is not None:
            edge = self.state.blocks.edge_at(selected, x, y)
            if edge is not None:
                return edge.cursor
        if self.state.blocks.hit_test(x, y) is not None:
            return "move"
        if self.mode is Mode.ARROW:
            return "crosshair"
        return "default"

    # ------------- mode handlers: pointer down -------------

    def _create_down(self, x: float, y: float) -> None:
        if self._pick(x, y):
            return
        self.select(None)
        if self.state.has_image and not self.state.transform.contains(x, y):
            return
        cfg = self.state.config
        self._start = (x, y)
        self.preview_rect = normalized_rect(x, y, x, y, cfg.min_block_width, cfg.min_block_height)
        self.interaction = Interaction.PREVIEWING
        logger.debug(f"block preview started at ({x:.1f}, {y:.1f})")

    def _edit_down(self, x: float, y: float) -> None:
        if not self._pick(x, y):
            self.select(None)

    def _arrow_down(self, x: float, y: float) -> None:
        if self._pick(x, y):
            return
        self.select(None)
        self._start = (x, y)
        self.preview_arrow = (x, y, x, y)
        self.interaction = Interaction.DRAWING_ARROW
        logger.debug(f"arrow drawing started at ({x:.1f}, {y:.1f})")

    def _pick(self, x: float, y: float) -> bool:
        """Select whatever is under (x, y) and start a drag/resize on blocks."""
        blocks = self.state.blocks

        selected = self.selected_block
        if selected is not None:
            edge = blocks.edge_at(selected, x, y)
            if edge is not None:
                self._begin_block_gesture(selected, x, y)
                self._resize_edge = edge
                self.interaction = Interaction.RESIZING
                return True

        block = blocks.hit_test(x, y)
        if block is not None:
            self.select(block)
            self._begin_block_gesture(block, x, y)
            self.interaction = Interaction.DRAGGING
            return True

        arrow = self.state.arrows.hit_test(x, y)
        if arrow is not None:
            self.select(arrow)
            return True

        return False

    def _begin_block_gesture(self, block: Block, x: float, y: float) -> None:
        self._start = (x, y)
        self._drag_block_id = block.id
        self._drag_offset = (x - block.x, y - block.y)
        self._drag_orig = block.geometry()

    # ------------- shared: pointer move / up -------------

    def _gesture_move(self, x: float, y: float) -> None:
        if self.interaction is Interaction.IDLE:
            return

        if self.interaction is Interaction.PREVIEWING and self._start is not None:
            cfg = self.state.config
            sx, sy = self._start
            self.preview_rect = normalized_rect(
                sx, sy, x, y, cfg.min_block_width, cfg.min_block_height
            )
            return

        if self.interaction is Interaction.DRAWING_ARROW and self._start is not None:
            sx, sy = self._start
            self.preview_arrow = (sx, sy, x, y)
            return

        block_id = self._drag_block_id
        if block_id is None or block_id not in self.state.blocks:
            return

        if self.interaction is Interaction.DRAGGING:
            dx, dy = self._drag_offset
            self.state.blocks.drag(block_id, x - dx, y - dy)
            self.state.arrows.reanchor(block_id)
        elif self.interaction is Interaction.RESIZING and self._resize_edge is not None:
            if self.state.blocks.resize(block_id, self._resize_edge, x, y):
                self.state.arrows.reanchor(block_id)

    def _gesture_up(self, x: float, y: float) -> None:
        interaction = self.interaction

        if interaction is Interaction.PREVIEWING:
            if self._inside_viewport(x, y) and self._start is not None:
                self._commit_block(x, y)
            else:
                logger.debug("block preview abandoned outside the canvas")

        elif interaction is Interaction.DRAWING_ARROW:
            if self._inside_viewport(x, y) and self._start is not None:
                arrow = self.state.arrows.create(self._start, (x, y))
                if arrow is not None:
                    self._emit(self._arrows_changed_handlers)
            else:
                logger.debug("arrow drawing abandoned outside the canvas")

        elif interaction in (Interaction.DRAGGING, Interaction.RESIZING):
            block = self.state.blocks.get(self._drag_block_id)
            if block is not None and block.geometry() != self._drag_orig:
                logger.info(
                    f"block {block.id} {interaction.value} done: x={block.x:.1f}, "
                    f"y={block.y:.1f}, w={block.width:.1f}, h={block.height:.1f}"
                )
                self._emit(self._blocks_changed_handlers)
                if self.state.arrows.for_block(block.id):
                    self._emit(self._arrows_changed_handlers)

        self._reset_gesture()

    def _commit_block(self, x: float, y: float) -> None:
        cfg = self.state.config
        sx, sy = self._start
        bx, by, bw, bh = normalized_rect(sx, sy, x, y, cfg.min_block_width, cfg.min_block_height)
        block = self.state.blocks.create(bx + bw / 2.0, by + bh / 2.0, bw, bh)
        self._emit(self._blocks_changed_handlers)
        self.select(block)

    def _inside_viewport(self, x: float, y: float) -> bool:
        return (
            0.0 <= x <= self.state.viewport_width
            and 0.0 <= y <= self.state.viewport_height
        )

    def _reset_gesture(self) -> None:
        self.interaction = Interaction.IDLE
        self._start = None
        self._drag_block_id = None
        self._drag_offset = (0.0, 0.0)
        self._drag_orig = None
        self._resize_edge = None
        self.preview_rect = None
        self.preview_arrow = None

    # ------------- internals -------------

    def _on_block_deleted(self, block_id: int) -> None:
        sel = self.selection
        if sel is None:
            return
        if sel.kind is ShapeKind.BLOCK and sel.id == block_id:
            self.select(None)
        elif sel.kind is ShapeKind.ARROW and sel.id not in self.state.arrows:
            self.select(None)

    def _emit_warning(self, message: str) -> None:
        self._emit(self._warning_handlers, message)

    def _emit(self, handlers: list, *args) -> None:
        for handler in list(handlers):
            try:
                handler(*args)
            except Exception:
                logger.exception("Error in editor controller handler")
