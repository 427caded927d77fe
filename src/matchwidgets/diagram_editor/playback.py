# matchwidgets/src/matchwidgets/diagram_editor/playback.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from matchwidgets.utils.logging import get_logger

from .config import PlaybackConfig
from .model import Arrow, Block, ImageInfo
from .serialization import import_questions
from .transform import Transform, fit_image

logger = get_logger(__name__)


@dataclass
class WordTile:
    """A word placed in the bank below the image (display coords)."""

    block_id: int
    text: str
    x: float
    y: float
    width: float


@dataclass
class PlaybackDiagram:
    """Read-only diagram reconstructed for one display size."""

    image: ImageInfo
    transform: Transform
    blocks: List[Block] = field(default_factory=list)
    words: Dict[int, str] = field(default_factory=dict)
    arrows: List[Arrow] = field(default_factory=list)
    word_bank: List[WordTile] = field(default_factory=list)
    stage_height: float = 0.0


def word_tile_width(text: str, config: PlaybackConfig) -> float:
    return max(config.word_min_width_px, len(text) * config.word_char_width_px + config.word_extra_width_px)


def layout_word_bank(
    words: Iterable[Tuple[int, str]],
    transform: Transform,
    stage_width: float,
    config: PlaybackConfig | None = None,
) -> Tuple[List[WordTile], float]:
    """Flow word tiles left-to-right below the image, wrapping at its right edge.

    Returns the tiles and the stage height needed to show image and words.
    """
    cfg = config if config is not None else PlaybackConfig()
    margin = cfg.word_margin_px

    left = transform.offset_x
    right = min(stage_width - margin, transform.offset_x + transform.display_width)
    image_bottom = transform.offset_y + transform.display_height

    cursor_x = left
    cursor_y = image_bottom + margin
    tiles: List[WordTile] = []

    for block_id, text in words:
        width = word_tile_width(text, cfg)
        if cursor_x > left and cursor_x + width > right:
            cursor_x = left
            cursor_y += cfg.word_line_height_px
        tiles.append(WordTile(block_id=block_id, text=text, x=cursor_x, y=cursor_y, width=width))
        cursor_x += width + margin

    required = image_bottom + margin
    if tiles:
        required = max(required, tiles[-1].y + cfg.word_line_height_px + margin)
    return tiles, max(cfg.min_stage_height_px, float(math.ceil(required)))


def build_playback(
    questions: Iterable[Mapping[str, Any]],
    image: ImageInfo,
    viewport_width: float,
    viewport_height: float,
    *,
    arrows: Optional[Iterable[Mapping[str, Any]]] = None,
    config: PlaybackConfig | None = None,
) -> PlaybackDiagram:
    """Rebuild a saved exercise for display at the given viewport size."""
    cfg = config if config is not None else PlaybackConfig()
    transform = fit_image(
        image.original_width,
        image.original_height,
        viewport_width,
        viewport_height,
        cfg.padding,
        allow_upscale=cfg.allow_upscale,
    )
    imported = import_questions(
        questions,
        transform,
        image.original_width,
        image.original_height,
        arrows=arrows,
    )

    stage_width = viewport_width if viewport_width > 0 else transform.offset_x * 2 + transform.display_width
    tiles, stage_height = layout_word_bank(
        ((b.id, imported.words.get(b.id, "")) for b in imported.blocks),
        transform,
        stage_width,
        cfg,
    )

    logger.info(
        f"playback built: {len(imported.blocks)} blocks, {len(imported.arrows)} arrows, "
        f"scale={transform.scale:.4f}, stage_height={stage_height:.0f}"
    )
    return PlaybackDiagram(
        image=image,
        transform=transform,
        blocks=imported.blocks,
        words=imported.words,
        arrows=imported.arrows,
        word_bank=tiles,
        stage_height=stage_height,
    )
