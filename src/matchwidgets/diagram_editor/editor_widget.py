# matchwidgets/src/matchwidgets/diagram_editor/editor_widget.py

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from nicegui import ui, events
from PIL import Image

from matchwidgets.utils.logging import get_logger

from .config import EditorConfig
from .controller import EditorController, Interaction
from .model import ImageInfo, Mode, ShapeKind, ShapeRef
from .serialization import ExportValidationError
from .services import (
    ExercisePersistence,
    ImageUploader,
    SaveResult,
    build_test_payload,
)
from .state import EditorState
from . import svg
from .upload import read_upload_bytes

logger = get_logger(__name__)

_MODE_LABELS = {
    Mode.CREATE: "Create blocks",
    Mode.EDIT: "Edit",
    Mode.ARROW: "Draw arrows",
}


def blank_canvas(width: float, height: float, color: str) -> Image.Image:
    """Solid-color source image that fixes the logical canvas size."""
    return Image.new("RGB", (max(1, int(round(width))), max(1, int(round(height)))), color)


class MatchingEditorWidget:
    """NiceGUI authoring canvas for matching exercises.

    The author uploads a picture, draws numbered blocks on it, types the
    word each block hides and draws arrows from blocks to features of the
    picture. All shapes are SVG drawn over a ``ui.interactive_image`` whose
    source is a blank canvas of the viewport size, so mouse coordinates are
    viewport (display) pixels.

    Events (via callback registration):
        on_saved(handler): handler(payload, SaveResult) after a successful save
        on_image_changed(handler): handler(ImageInfo)
    """

    def __init__(
        self,
        *,
        uploader: ImageUploader | None = None,
        persistence: ExercisePersistence | None = None,
        test_name: str | None = None,
        parent=None,
        config: EditorConfig | None = None,
    ) -> None:
        self.config = config if config is not None else EditorConfig()
        self.state = EditorState(self.config)
        self.controller = EditorController(self.state)
        self.uploader = uploader
        self.persistence = persistence
        self.test_name = test_name

        self._saved_handlers: List[Callable[[Dict[str, Any], SaveResult], None]] = []
        self._image_changed_handlers: List[Callable[[ImageInfo], None]] = []

        self._word_ids: List[int] = []
        self._word_inputs: Dict[int, Any] = {}
        self._cursor: str = "default"

        self.controller.on_selection_changed(self._on_selection_changed)
        self.controller.on_warning(self._on_warning)
        self.controller.on_blocks_changed(self._on_blocks_changed)
        self.controller.on_arrows_changed(self._redraw_overlays)

        container = parent if parent is not None else ui.element("div").classes("w-full")

        with container:
            with ui.row().classes("items-center gap-2"):
                self._mode_buttons = {
                    mode: ui.button(label, on_click=lambda _e=None, m=mode: self.set_mode(m)).props("outline")
                    for mode, label in _MODE_LABELS.items()
                }
                self._delete_block_button = ui.button(
                    "Delete block", on_click=lambda _e=None: self.controller.delete_selected()
                ).props("color=negative")
                self._delete_arrow_button = ui.button(
                    "Delete arrow", on_click=lambda _e=None: self.controller.delete_selected()
                ).props("color=negative")
                ui.button("Save", on_click=lambda _e=None: self.save()).props("color=positive")
                ui.button("Reset", on_click=lambda _e=None: self.reset()).props("outline color=grey")

            if self.uploader is not None:
                self._upload = ui.upload(
                    label="Upload image",
                    auto_upload=True,
                    on_upload=self._on_upload,
                ).props("accept=image/*").classes("w-full")

            self.interactive = (
                ui.interactive_image(
                    self._canvas_pil(),
                    cross=False,
                    events=["mousedown", "mousemove", "mouseup", "mouseleave"],
                )
                .classes("w-full")
                .style(self._canvas_style())
            )
            self.interactive.on_mouse(self._on_mouse)

            # Global key handler for Delete / Escape
            ui.on("keydown", self._on_key)

            self._words_container = ui.column().classes("w-full gap-1")

        self._sync_mode_buttons()
        self._sync_delete_buttons()
        self._redraw_overlays()

        logger.info(
            f"MatchingEditorWidget initialized: viewport="
            f"{self.state.viewport_width:.0f}x{self.state.viewport_height:.0f}, "
            f"uploader={type(uploader).__name__ if uploader else None}, "
            f"persistence={type(persistence).__name__ if persistence else None}"
        )

    # ------------- event registration -------------

    def on_saved(self, handler: Callable[[Dict[str, Any], SaveResult], None]) -> None:
        self._saved_handlers.append(handler)

    def on_image_changed(self, handler: Callable[[ImageInfo], None]) -> None:
        self._image_changed_handlers.append(handler)

    # ------------- public API -------------

    @property
    def mode(self) -> Mode:
        return self.controller.mode

    def set_mode(self, mode: Mode) -> None:
        self.controller.set_mode(mode)
        self._sync_mode_buttons()
        self._redraw_overlays()

    def set_image(self, image: ImageInfo) -> None:
        """Show `image` as the background; existing shapes keep their image position."""
        self.controller.cancel()
        self.state.set_image(image)
        self._redraw_overlays()
        self._emit(self._image_changed_handlers, image)

    def set_viewport(self, width: float, height: float) -> None:
        """Resize the logical canvas and refit the image."""
        if (float(width), float(height)) == (self.state.viewport_width, self.state.viewport_height):
            return
        self.controller.cancel()
        self.state.set_viewport(width, height)
        self.interactive.set_source(self._canvas_pil())
        self.interactive.style(self._canvas_style())
        self._redraw_overlays()

    def load_exercise(
        self,
        image: ImageInfo,
        questions: List[Mapping[str, Any]],
        *,
        arrows: Optional[List[Mapping[str, Any]]] = None,
    ) -> None:
        """Resume editing a saved exercise."""
        self.controller.reset()
        self.state.set_image(image)
        diagram = self.state.load_questions(questions, arrows=arrows)
        if diagram.pruned_arrows:
            ui.notify(f"{len(diagram.pruned_arrows)} arrow(s) without a block were dropped", type="warning")
        self._rebuild_words(force=True)
        self._redraw_overlays()
        self._emit(self._image_changed_handlers, image)

    def reset(self) -> None:
        """Drop the image, every block, word and arrow; back to the empty editor."""
        self.controller.reset()
        self.state.reset()
        if self.uploader is not None:
            self._upload.reset()
        self._rebuild_words(force=True)
        self._sync_delete_buttons()
        self._redraw_overlays()

    def build_payload(self) -> Dict[str, Any]:
        """Save payload for the current diagram.

        Raises:
            RuntimeError: if no image is loaded.
            ExportValidationError: if a block has no word.
        """
        questions = self.state.export_questions()
        arrows = self.state.export_arrows()
        assert self.state.image is not None
        return build_test_payload(self.state.image.url, questions, arrows, test_name=self.test_name)

    def save(self) -> SaveResult:
        """Validate, export and hand the payload to the persistence collaborator."""
        if not self.state.has_image:
            ui.notify("Upload an image first", type="warning")
            return SaveResult(success=False, error="no image")

        try:
            payload = self.build_payload()
        except ExportValidationError as e:
            ids = ", ".join(str(i) for i in e.missing_block_ids)
            ui.notify(f"Enter a word for block(s) {ids}", type="warning")
            return SaveResult(success=False, error=str(e))

        if self.persistence is None:
            logger.warning("save requested but no persistence is configured")
            ui.notify("Saving is not configured", type="warning")
            return SaveResult(success=False, error="no persistence")

        try:
            result = self.persistence.save(payload)
        except Exception as e:
            logger.exception("Error saving exercise")
            ui.notify(f"Save failed: {e}", type="negative")
            return SaveResult(success=False, error=str(e))

        if not result.success:
            logger.warning(f"save rejected: {result.error}")
            ui.notify(f"Save failed: {result.error}", type="negative")
            return result

        logger.info(f"exercise saved: test_id={result.test_id}, blocks={payload['num_blocks']}")
        ui.notify("Exercise saved", type="positive")
        self._emit(self._saved_handlers, payload, result)
        return result

    # ------------- rendering -------------

    def _canvas_pil(self) -> Image.Image:
        return blank_canvas(
            self.state.viewport_width, self.state.viewport_height, self.config.canvas_background
        )

    def _canvas_style(self) -> str:
        return (
            f"aspect-ratio: {self.state.viewport_width:.0f} / {self.state.viewport_height:.0f}; "
            f"border: 1px solid #666; cursor: {self._cursor};"
        )

    def _redraw_overlays(self) -> None:
        """Draw image, blocks, arrows and the gesture preview as one SVG string."""
        cfg = self.config
        state = self.state
        ctrl = self.controller
        parts: list[str] = []

        if state.has_image:
            parts.append(svg.image_svg(state.image.url, state.transform))

        selection = ctrl.selection
        for block in state.blocks:
            is_selected = selection == ShapeRef(ShapeKind.BLOCK, block.id)
            parts.append(
                svg.block_svg(
                    block,
                    stroke=cfg.block_selected_color if is_selected else cfg.block_color,
                    fill=cfg.block_fill_color,
                    line_width=cfg.block_line_width,
                    label=state.words.text(block.id),
                )
            )
            if is_selected:
                parts.append(svg.handles_svg(block, cfg.block_selected_color))

        for arrow in state.arrows:
            is_selected = selection == ShapeRef(ShapeKind.ARROW, arrow.id)
            color, thickness = svg.arrow_stroke(arrow, cfg.arrow_style())
            if is_selected:
                color = cfg.arrow_selected_color
            parts.append(svg.arrow_svg(arrow, color=color, thickness=thickness))
            dot = state.arrows.indicator_position(arrow)
            if dot is not None:
                parts.append(svg.indicator_svg(dot[0], dot[1], cfg.arrow_color))

        if ctrl.preview_rect is not None:
            parts.append(svg.preview_rect_svg(ctrl.preview_rect, cfg.preview_color))
        if ctrl.preview_arrow is not None:
            parts.append(svg.preview_line_svg(ctrl.preview_arrow, cfg.arrow_color, cfg.arrow_thickness))

        self.interactive.content = "".join(parts)
        self.interactive.update()

    def _sync_mode_buttons(self) -> None:
        for mode, button in self._mode_buttons.items():
            if mode is self.controller.mode:
                button.props(remove="outline")
            else:
                button.props("outline")

    def _sync_delete_buttons(self) -> None:
        affordance = self.controller.delete_affordance
        self._delete_block_button.set_visibility(affordance is ShapeKind.BLOCK)
        self._delete_arrow_button.set_visibility(affordance is ShapeKind.ARROW)

    def _rebuild_words(self, force: bool = False) -> None:
        """One input per block, in creation order."""
        ids = self.state.blocks.ids()
        if ids == self._word_ids and not force:
            return
        self._word_ids = list(ids)
        self._word_inputs = {}
        self._words_container.clear()
        with self._words_container:
            for block_id in ids:
                with ui.row().classes("items-center gap-2"):
                    ui.label(f"{block_id}").classes("font-bold w-6")
                    self._word_inputs[block_id] = ui.input(
                        placeholder="Word",
                        value=self.state.words.text(block_id),
                        on_change=lambda e, bid=block_id: self._on_word_changed(bid, e.value),
                    ).classes("w-64")

    # ------------- internals: events -------------

    def _on_mouse(self, e: events.MouseEventArguments) -> None:
        x, y = float(e.image_x), float(e.image_y)
        ctrl = self.controller

        if e.type == "mousedown":
            if e.button != 0:
                return
            ctrl.pointer_down(x, y)
        elif e.type == "mousemove":
            if ctrl.interaction is Interaction.IDLE:
                self._update_cursor(ctrl.cursor_at(x, y))
                return
            ctrl.pointer_move(x, y)
        elif e.type == "mouseup":
            ctrl.pointer_up(x, y)
        elif e.type == "mouseleave":
            if ctrl.interaction is Interaction.IDLE:
                return
            # Released off-canvas: previews are abandoned, drags keep their last position
            ctrl.pointer_up(-1.0, -1.0)
        else:
            return

        self._redraw_overlays()

    def _on_key(self, e: events.GenericEventArguments) -> None:
        """Keyboard shortcuts: Delete removes the selection, Escape cancels a gesture."""
        args = e.args or {}
        key = args.get("key", "")

        if key == "Delete":
            self.controller.delete_selected()
        elif key == "Escape":
            self.controller.cancel()
            self._redraw_overlays()

    async def _on_upload(self, e: Any) -> None:
        if self.uploader is None:
            return
        try:
            data, filename = await read_upload_bytes(e)
            result = self.uploader.upload(data, filename)
        except Exception as ex:
            logger.exception("Error handling image upload")
            ui.notify(f"Upload failed: {ex}", type="negative")
            return

        if not result.success:
            ui.notify(f"Upload failed: {result.message or 'unknown error'}", type="negative")
            return

        self.set_image(result.to_image_info())
        ui.notify("Image uploaded", type="positive")

    def _on_word_changed(self, block_id: int, value: Any) -> None:
        if block_id not in self.state.blocks:
            return
        self.state.words.set_text(block_id, "" if value is None else str(value))
        self._redraw_overlays()

    def _on_selection_changed(self, _ref: Optional[ShapeRef]) -> None:
        self._sync_delete_buttons()
        self._redraw_overlays()

    def _on_blocks_changed(self) -> None:
        self._rebuild_words()
        self._redraw_overlays()

    def _on_warning(self, message: str) -> None:
        ui.notify(message, type="warning")

    def _update_cursor(self, cursor: str) -> None:
        if cursor == self._cursor:
            return
        self._cursor = cursor
        self.interactive.style(f"cursor: {cursor};")

    def _emit(self, handlers: list, *args) -> None:
        for handler in list(handlers):
            try:
                handler(*args)
            except Exception:
                logger.exception("Error in MatchingEditorWidget handler")
