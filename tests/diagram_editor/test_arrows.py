# matchwidgets/tests/diagram_editor/test_arrows.py

from __future__ import annotations

import pytest

from matchwidgets.diagram_editor.arrows import ArrowManager, point_segment_distance
from matchwidgets.diagram_editor.blocks import BlockManager
from matchwidgets.diagram_editor.config import EditorConfig
from matchwidgets.diagram_editor.model import Arrow


@pytest.fixture
def managers() -> tuple[BlockManager, ArrowManager]:
    blocks = BlockManager(EditorConfig())
    return blocks, ArrowManager(blocks)


def test_snap_boundary_is_inclusive(managers):
    blocks, arrows = managers
    block = blocks.create(300, 300)

    assert arrows.snap_to_nearest_block(360, 300) is block
    assert arrows.snap_to_nearest_block(360.001, 300) is None
    assert arrows.snap_to_nearest_block(330, 300, radius=20) is None


def test_snap_picks_nearest_center(managers):
    blocks, arrows = managers
    blocks.create(300, 300)
    right = blocks.create(380, 300)

    assert arrows.snap_to_nearest_block(345, 300) is right


def test_create_snaps_start_to_block_center(managers):
    blocks, arrows = managers
    block = blocks.create(300, 300)

    arrow = arrows.create((310, 330), (500, 450))

    assert arrow is not None
    assert arrow.start == (300.0, 300.0)
    assert arrow.end == (500.0, 450.0)
    assert arrow.associated_block_id == block.id
    assert arrow.association_type == "start"


def test_create_in_empty_space_is_rejected(managers):
    blocks, arrows = managers
    blocks.create(300, 300)
    warnings = []
    arrows.on_rejected(warnings.append)

    assert arrows.create((50, 50), (300, 300)) is None
    assert len(arrows) == 0
    assert warnings == ["Arrow must start near a block"]


def test_end_point_is_unconstrained(managers):
    blocks, arrows = managers
    blocks.create(300, 300)

    arrow = arrows.create((300, 300), (5000, -20))
    assert arrow is not None
    assert arrow.end == (5000.0, -20.0)


def test_deleting_block_deletes_its_arrows(managers):
    blocks, arrows = managers
    a = blocks.create(300, 300)
    b = blocks.create(500, 300)
    arrows.create((300, 300), (100, 100))
    arrows.create((300, 300), (100, 500))
    kept = arrows.create((500, 300), (600, 600))

    blocks.delete(a.id)

    assert [arr.id for arr in arrows] == [kept.id]
    assert arrows.for_block(b.id) == [kept]


def test_reanchor_follows_block(managers):
    blocks, arrows = managers
    block = blocks.create(300, 300)
    arrow = arrows.create((300, 300), (100, 100))

    blocks.drag(block.id, 400, 400)
    arrows.reanchor(block.id)

    assert arrow.start == block.center


def test_hit_test_and_indicator(managers):
    blocks, arrows = managers
    block = blocks.create(300, 300)
    arrow = arrows.create((300, 300), (500, 300))

    assert arrows.hit_test(400, 303) is arrow
    assert arrows.hit_test(400, 310) is None
    assert arrows.indicator_position(arrow) == (block.right + 5, block.y + 5)


def test_load_prunes_orphans(managers):
    blocks, arrows = managers
    blocks.create(300, 300)

    pruned = arrows.load([
        Arrow(1, 300, 300, 0, 0, associated_block_id=1),
        Arrow(2, 0, 0, 10, 10, associated_block_id=42),
    ])

    assert [a.id for a in pruned] == [2]
    assert [a.id for a in arrows] == [1]
    assert arrows.create((300, 300), (1, 1)).id == 2


def test_point_segment_distance():
    assert point_segment_distance(5, 3, 0, 0, 10, 0) == pytest.approx(3.0)
    assert point_segment_distance(-4, 3, 0, 0, 10, 0) == pytest.approx(5.0)
    assert point_segment_distance(3, 4, 0, 0, 0, 0) == pytest.approx(5.0)
