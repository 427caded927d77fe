# matchwidgets/tests/diagram_editor/test_controller.py

from __future__ import annotations

import pytest

from matchwidgets.diagram_editor.controller import EditorController, Interaction
from matchwidgets.diagram_editor.model import ImageInfo, Mode, ShapeKind, ShapeRef
from matchwidgets.diagram_editor.state import EditorState


@pytest.fixture
def ctrl() -> EditorController:
    return EditorController(EditorState())


def _draw_block(ctrl, x0, y0, x1, y1):
    ctrl.pointer_down(x0, y0)
    ctrl.pointer_move(x1, y1)
    ctrl.pointer_up(x1, y1)


def test_create_mode_preview_and_commit(ctrl):
    changes = []
    ctrl.on_blocks_changed(lambda: changes.append("blocks"))

    ctrl.pointer_down(100, 100)
    assert ctrl.interaction is Interaction.PREVIEWING
    assert ctrl.preview_rect == (100, 100, 20, 20)

    ctrl.pointer_move(200, 160)
    assert ctrl.preview_rect == (100, 100, 100, 60)

    ctrl.pointer_up(200, 160)
    block = ctrl.state.blocks.get(1)
    assert block.geometry() == pytest.approx((100, 100, 100, 60))
    assert ctrl.interaction is Interaction.IDLE
    assert ctrl.preview_rect is None
    assert ctrl.selection == ShapeRef(ShapeKind.BLOCK, 1)
    assert changes == ["blocks"]


def test_click_creates_minimum_block(ctrl):
    ctrl.pointer_down(100, 100)
    ctrl.pointer_up(100, 100)

    block = ctrl.state.blocks.get(1)
    assert (block.width, block.height) == (20.0, 20.0)


def test_release_outside_viewport_abandons_preview(ctrl):
    ctrl.pointer_down(100, 100)
    ctrl.pointer_move(900, 100)
    ctrl.pointer_up(900, 100)

    assert len(ctrl.state.blocks) == 0
    assert ctrl.interaction is Interaction.IDLE


def test_no_preview_off_the_image():
    state = EditorState()
    state.set_image(ImageInfo("/img.png", 1600, 1200))  # image spans y 20..580
    ctrl = EditorController(state)

    ctrl.pointer_down(5, 5)
    assert ctrl.interaction is Interaction.IDLE
    ctrl.pointer_up(50, 50)
    assert len(state.blocks) == 0


def test_press_on_block_drags_instead_of_creating(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)

    ctrl.pointer_down(150, 130)
    assert ctrl.interaction is Interaction.DRAGGING
    ctrl.pointer_move(250, 230)
    ctrl.pointer_up(250, 230)

    block = ctrl.state.blocks.get(1)
    assert (block.x, block.y) == (200.0, 200.0)
    assert len(ctrl.state.blocks) == 1


def test_cancel_restores_dragged_block(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)

    ctrl.pointer_down(150, 130)
    ctrl.pointer_move(400, 400)
    ctrl.cancel()

    assert ctrl.state.blocks.get(1).geometry() == (100.0, 100.0, 100.0, 60.0)
    assert ctrl.interaction is Interaction.IDLE


def test_resize_selected_block_respects_minimum(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)

    ctrl.pointer_down(200, 130)
    assert ctrl.interaction is Interaction.RESIZING

    ctrl.pointer_move(250, 130)
    assert ctrl.state.blocks.get(1).width == 150.0

    ctrl.pointer_move(105, 130)  # would be 5px wide
    assert ctrl.state.blocks.get(1).width == 150.0
    ctrl.pointer_up(105, 130)


def test_edit_mode_does_not_create(ctrl):
    ctrl.set_mode(Mode.EDIT)
    _draw_block(ctrl, 100, 100, 200, 160)
    assert len(ctrl.state.blocks) == 0


def test_arrow_mode_rejects_arrow_in_empty_space(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)
    warnings = []
    ctrl.on_warning(warnings.append)

    ctrl.set_mode(Mode.ARROW)
    ctrl.pointer_down(500, 500)
    assert ctrl.interaction is Interaction.DRAWING_ARROW
    ctrl.pointer_up(300, 300)

    assert len(ctrl.state.arrows) == 0
    assert warnings == ["Arrow must start near a block"]


def test_arrow_mode_creates_snapped_arrow_and_selection_swaps(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)  # center (150, 130)
    arrow_changes = []
    ctrl.on_arrows_changed(lambda: arrow_changes.append(1))

    ctrl.set_mode(Mode.ARROW)
    ctrl.select(None)
    ctrl.pointer_down(150, 175)
    ctrl.pointer_move(300, 300)
    assert ctrl.preview_arrow == (150, 175, 300, 300)
    ctrl.pointer_up(400, 400)

    arrow = ctrl.state.arrows.get(1)
    assert arrow.start == (150.0, 130.0)
    assert arrow.end == (400.0, 400.0)
    assert arrow_changes == [1]

    # select the arrow by clicking its midpoint
    ctrl.pointer_down(275, 265)
    ctrl.pointer_up(275, 265)
    assert ctrl.delete_affordance is ShapeKind.ARROW
    assert ctrl.selected_arrow is arrow

    # a block click swaps the affordance
    ctrl.pointer_down(150, 130)
    ctrl.pointer_up(150, 130)
    assert ctrl.delete_affordance is ShapeKind.BLOCK
    assert ctrl.selected_arrow is None


def test_delete_selected_block_cascades(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)
    ctrl.state.arrows.create((150, 130), (400, 400))
    ctrl.select(ctrl.state.blocks.get(1))

    assert ctrl.delete_selected() is True
    assert len(ctrl.state.blocks) == 0
    assert len(ctrl.state.arrows) == 0
    assert ctrl.selection is None
    assert ctrl.delete_affordance is None


def test_delete_selected_arrow_keeps_block(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)
    arrow = ctrl.state.arrows.create((150, 130), (400, 400))
    ctrl.select(arrow)

    assert ctrl.delete_selected() is True
    assert len(ctrl.state.arrows) == 0
    assert len(ctrl.state.blocks) == 1
    assert ctrl.selection is None


def test_drag_reanchors_arrows(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)
    arrow = ctrl.state.arrows.create((150, 130), (400, 400))

    ctrl.pointer_down(150, 130)
    ctrl.pointer_move(250, 230)
    ctrl.pointer_up(250, 230)

    assert arrow.start == (250.0, 230.0)


def test_set_mode_cancels_preview(ctrl):
    ctrl.pointer_down(100, 100)
    ctrl.set_mode(Mode.ARROW)

    assert ctrl.interaction is Interaction.IDLE
    assert ctrl.preview_rect is None
    assert ctrl.mode is Mode.ARROW


def test_cursor_feedback(ctrl):
    _draw_block(ctrl, 100, 100, 200, 160)

    assert ctrl.cursor_at(200, 130) == "ew-resize"
    assert ctrl.cursor_at(150, 130) == "move"
    assert ctrl.cursor_at(500, 500) == "default"
    ctrl.set_mode(Mode.ARROW)
    assert ctrl.cursor_at(500, 500) == "crosshair"


def test_failing_handler_does_not_stop_others(ctrl):
    seen = []

    def boom(_ref):
        raise RuntimeError("boom")

    ctrl.on_selection_changed(boom)
    ctrl.on_selection_changed(seen.append)

    _draw_block(ctrl, 100, 100, 200, 160)
    assert seen == [ShapeRef(ShapeKind.BLOCK, 1)]
