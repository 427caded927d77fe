# matchwidgets/tests/diagram_editor/test_state.py

from __future__ import annotations

import pytest

from matchwidgets.diagram_editor.model import Edge, ImageInfo
from matchwidgets.diagram_editor.state import EditorState
from matchwidgets.diagram_editor.transform import display_to_original


IMAGE = ImageInfo("/uploads/heart.png", 1600, 1200)


@pytest.fixture
def state() -> EditorState:
    s = EditorState()
    s.set_image(IMAGE)
    return s


def test_set_image_fits_viewport(state):
    assert state.has_image
    assert state.transform.scale == pytest.approx(560 / 1200)


def test_set_viewport_is_idempotent(state):
    assert state.set_viewport(800, 600) is False
    assert state.set_viewport(1600, 1200) is True
    assert state.set_viewport(1600, 1200) is False


def test_viewport_change_keeps_content_on_image_pixels(state):
    block = state.blocks.create(130, 115, 60, 30)  # top-left at display (100, 100)
    arrow = state.arrows.create(block.center, (400, 400))
    before = display_to_original(block.x, block.y, state.transform)
    end_before = display_to_original(arrow.end_x, arrow.end_y, state.transform)
    width_before = block.width / state.transform.scale

    state.set_viewport(1600, 1200)

    after = display_to_original(block.x, block.y, state.transform)
    assert after == pytest.approx(before)
    assert block.width / state.transform.scale == pytest.approx(width_before)
    assert display_to_original(arrow.end_x, arrow.end_y, state.transform) == pytest.approx(end_before)
    assert arrow.start == pytest.approx(block.center)


def test_export_without_image_raises():
    with pytest.raises(RuntimeError):
        EditorState().export_questions()
    with pytest.raises(RuntimeError):
        EditorState().load_questions([])


def test_export_then_load_at_another_viewport(state):
    block = state.blocks.create(130, 115, 60, 30)
    state.words.set_text(block.id, "heart")
    state.arrows.create(block.center, (400, 400))
    questions = state.export_questions()
    arrows = state.export_arrows()
    original = display_to_original(block.x, block.y, state.transform)

    other = EditorState()
    other.set_viewport(1200, 900)
    other.set_image(IMAGE)
    other.load_questions(questions, arrows=arrows)

    loaded = other.blocks.get(block.id)
    assert display_to_original(loaded.x, loaded.y, other.transform) == pytest.approx(original)
    assert other.words.text(block.id) == "heart"
    assert len(other.arrows) == 1
    assert other.arrows.get(1).associated_block_id == block.id


def test_clear_keeps_image(state):
    state.blocks.create(130, 115)
    state.clear()
    assert len(state.blocks) == 0
    assert len(state.words) == 0
    assert state.has_image


def test_load_questions_grows_tiny_blocks(state):
    coords = {"rel_x": 10, "rel_y": 10, "rel_width": 0.5, "rel_height": 0.5}
    state.load_questions([{"question_id": 1, "word": "eye", "block_coordinates": coords}])

    block = state.blocks.get(1)
    assert (block.width, block.height) == (20.0, 20.0)
    assert block.contains(*block.center)


def test_shrunk_block_can_be_widened_after_viewport_change(state):
    block = state.blocks.create(130, 115, 60, 20)
    state.set_viewport(400, 300)
    assert block.height < state.config.min_block_height

    assert state.blocks.resize(block.id, Edge.RIGHT, block.right + 50, block.y) is True


def test_reset_drops_image_and_shapes(state):
    block = state.blocks.create(130, 115)
    state.arrows.create(block.center, (400, 400))

    state.reset()

    assert not state.has_image
    assert state.image is None and state.transform is None
    assert (len(state.blocks), len(state.arrows), len(state.words)) == (0, 0, 0)
    with pytest.raises(RuntimeError):
        state.export_questions()
