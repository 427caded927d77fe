# matchwidgets/tests/diagram_editor/test_playback.py

from __future__ import annotations

import pytest

from matchwidgets.diagram_editor.config import PlaybackConfig
from matchwidgets.diagram_editor.model import ImageInfo
from matchwidgets.diagram_editor.playback import (
    build_playback,
    layout_word_bank,
    word_tile_width,
)
from matchwidgets.diagram_editor.transform import fit_image


def test_word_tile_width():
    cfg = PlaybackConfig()
    assert word_tile_width("a", cfg) == 60
    assert word_tile_width("abcdefghijklmn", cfg) == 14 * 8 + 20


def test_word_bank_wraps_at_image_edge():
    transform = fit_image(400, 300, 800, 600, 0, allow_upscale=False)  # x 200..600, bottom 450
    words = [(1, "abcdefghijklmn"), (2, "abcdefghijklmn"), (3, "abcdefghijklmn")]

    tiles, stage_height = layout_word_bank(words, transform, 800)

    assert [(t.x, t.y) for t in tiles] == [(200, 462), (344, 462), (200, 500)]
    assert stage_height == 550


def test_word_bank_minimum_stage_height():
    transform = fit_image(100, 50, 800, 600, 0, allow_upscale=False)
    tiles, stage_height = layout_word_bank([(1, "eye")], transform, 800)

    assert len(tiles) == 1
    assert stage_height == 400


def test_build_playback_places_blocks_without_upscaling():
    image = ImageInfo("/uploads/small.png", 400, 300)
    questions = [
        {
            "question_id": 1,
            "word": "eye",
            "block_coordinates": {"rel_x": 10, "rel_y": 10, "rel_width": 25, "rel_height": 10},
            "has_arrow": True,
            "arrow": {"rel_start_x": 22.5, "rel_start_y": 15, "rel_end_x": 50, "rel_end_y": 50},
        },
        {
            "question_id": 2,
            "word": "ear",
            "block_coordinates": {"rel_x": 60, "rel_y": 60, "rel_width": 10, "rel_height": 10},
        },
    ]

    diagram = build_playback(questions, image, 800, 600)

    assert diagram.transform.scale == 1.0
    block = diagram.blocks[0]
    assert block.geometry() == pytest.approx((240, 180, 100, 30))
    assert diagram.arrows[0].end == pytest.approx((400, 300))
    assert [t.text for t in diagram.word_bank] == ["eye", "ear"]
    assert diagram.words == {1: "eye", 2: "ear"}
    assert diagram.stage_height >= 450


def test_build_playback_downscales_large_image():
    image = ImageInfo("/uploads/big.png", 1600, 1200)
    diagram = build_playback([], image, 800, 600)

    assert diagram.transform.scale == pytest.approx(0.5)
    assert diagram.blocks == []
    assert diagram.word_bank == []
