# matchwidgets/src/matchwidgets/diagram_editor/arrows.py

from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, Iterator, List, Optional

import numpy as np

from matchwidgets.utils.logging import get_logger

from .blocks import BlockManager
from .config import EditorConfig
from .model import Arrow, Block, Point

logger = get_logger(__name__)


def point_segment_distance(
    px: float,
    py: float,
    x0: float,
    y0: float,
    x1: float,
    y1: float,
) -> float:
    """Euclidean distance from (px, py) to the segment (x0, y0)-(x1, y1)."""
    dx = x1 - x0
    dy = y1 - y0
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return math.hypot(px - x0, py - y0)
    t = ((px - x0) * dx + (py - y0) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (x0 + t * dx), py - (y0 + t * dy))


class ArrowManager:
    """Directed segments anchored to the nearest block.

    A point is "near" a block when its Euclidean distance to the block center
    is at most the snap radius. Snapping, placement validation and
    association all use this one predicate.

    Events (via callback registration):
        on_rejected(handler): Handler called as handler(message) when a
            placement is refused.
    """

    def __init__(self, blocks: BlockManager, config: EditorConfig | None = None) -> None:
        self.blocks = blocks
        self.config = config if config is not None else blocks.config
        self._arrows: Dict[int, Arrow] = {}
        self._next_id: int = 1
        self._rejected_handlers: List[Callable[[str], None]] = []

        # Deleting a block deletes every arrow anchored to it
        self.blocks.on_block_deleted(self.delete_for_block)

    # ------------- container protocol -------------

    def __len__(self) -> int:
        return len(self._arrows)

    def __contains__(self, arrow_id: object) -> bool:
        return arrow_id in self._arrows

    def __iter__(self) -> Iterator[Arrow]:
        return iter(list(self._arrows.values()))

    @property
    def arrows(self) -> List[Arrow]:
        return list(self._arrows.values())

    def get(self, arrow_id: int) -> Optional[Arrow]:
        return self._arrows.get(arrow_id)

    def for_block(self, block_id: int) -> List[Arrow]:
        """Arrows anchored to block_id, oldest first."""
        return [a for a in self._arrows.values() if a.associated_block_id == block_id]

    def on_rejected(self, handler: Callable[[str], None]) -> None:
        """Register callback for refused placements.

        Handler is called with: message (str)
        """
        self._rejected_handlers.append(handler)

    # ------------- snapping -------------

    def snap_to_nearest_block(
        self,
        x: float,
        y: float,
        radius: float | None = None,
    ) -> Optional[Block]:
        """Nearest block whose center is within `radius` of (x, y).

        Ties go to the block that comes first in creation order.
        """
        r = self.config.snap_radius_px if radius is None else radius
        blocks = self.blocks.blocks
        if not blocks:
            return None

        centers = np.array([b.center for b in blocks], dtype=float)
        distances = np.hypot(centers[:, 0] - x, centers[:, 1] - y)
        idx = int(np.argmin(distances))
        if distances[idx] > r:
            return None
        return blocks[idx]

    def validate_placement(self, start: Point, end: Point) -> bool:
        """True iff the start point is near some block; end is unconstrained."""
        return self.snap_to_nearest_block(start[0], start[1]) is not None

    # ------------- creation / deletion -------------

    def create(self, start: Point, end: Point) -> Optional[Arrow]:
        """Create an arrow whose start snaps to the nearest block center.

        Returns None (and notifies on_rejected handlers) when no block is near
        the start point; no state is changed in that case.
        """
        if not self.validate_placement(start, end):
            logger.info(f"arrow rejected: no block near start ({start[0]:.1f}, {start[1]:.1f})")
            self._notify_rejected(self.config.warning_text)
            return None

        block = self.snap_to_nearest_block(start[0], start[1])
        assert block is not None
        cx, cy = block.center

        arrow = Arrow(
            id=self._next_id,
            start_x=cx,
            start_y=cy,
            end_x=float(end[0]),
            end_y=float(end[1]),
            associated_block_id=block.id,
            association_type="start",
        )
        self._next_id += 1
        self._arrows[arrow.id] = arrow
        logger.info(
            f"created arrow {arrow.id} from block {block.id} "
            f"to ({arrow.end_x:.1f}, {arrow.end_y:.1f})"
        )
        return arrow

    def delete(self, arrow_id: int) -> bool:
        """Remove an arrow (its association indicator goes with it)."""
        if self._arrows.pop(arrow_id, None) is None:
            return False
        logger.info(f"deleted arrow {arrow_id}")
        return True

    def delete_for_block(self, block_id: int) -> List[int]:
        """Remove every arrow anchored to block_id; returns the removed ids."""
        removed = [a.id for a in self.for_block(block_id)]
        for arrow_id in removed:
            del self._arrows[arrow_id]
        if removed:
            logger.info(f"block {block_id} deleted, removed arrows {removed}")
        return removed

    def reanchor(self, block_id: int) -> None:
        """Move the start of every arrow of block_id to the block's center."""
        block = self.blocks.get(block_id)
        if block is None:
            return
        cx, cy = block.center
        for arrow in self.for_block(block_id):
            arrow.start_x, arrow.start_y = cx, cy

    def load(self, arrows: Iterable[Arrow]) -> List[Arrow]:
        """Replace all arrows; arrows whose block does not exist are pruned.

        Returns the pruned arrows.
        """
        self._arrows.clear()
        pruned: List[Arrow] = []
        for arrow in arrows:
            if arrow.associated_block_id not in self.blocks:
                pruned.append(arrow)
                continue
            if arrow.id in self._arrows:
                arrow.id = max(self._arrows) + 1
            self._arrows[arrow.id] = arrow

        self._next_id = max(self._arrows, default=0) + 1
        if pruned:
            logger.warning(
                f"pruned {len(pruned)} orphan arrow(s) referencing "
                f"{sorted({a.associated_block_id for a in pruned})}"
            )
        return pruned

    def clear(self) -> None:
        self._arrows.clear()
        self._next_id = 1

    # ------------- hit-testing / decoration -------------

    def hit_test(self, x: float, y: float, tolerance: float | None = None) -> Optional[Arrow]:
        """Most recently created arrow passing within `tolerance` of (x, y)."""
        tol = self.config.arrow_hit_tolerance_px if tolerance is None else tolerance
        for arrow in reversed(list(self._arrows.values())):
            d = point_segment_distance(
                x, y, arrow.start_x, arrow.start_y, arrow.end_x, arrow.end_y
            )
            if d <= tol:
                return arrow
        return None

    def indicator_position(self, arrow: Arrow) -> Optional[Point]:
        """Where the association dot is drawn: just off the block's top-right."""
        block = self.blocks.get(arrow.associated_block_id)
        if block is None:
            return None
        offset = self.config.indicator_offset_px
        return block.right + offset, block.y + offset

    def _notify_rejected(self, message: str) -> None:
        for handler in list(self._rejected_handlers):
            try:
                handler(message)
            except Exception:
                logger.exception("Error in arrow rejected handler")
