# matchwidgets/src/matchwidgets/diagram_editor/blocks.py

from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Optional

from matchwidgets.utils.logging import get_logger

from .config import EditorConfig
from .model import Block, Edge, Word

logger = get_logger(__name__)


def normalized_rect(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    min_width: float,
    min_height: float,
) -> tuple[float, float, float, float]:
    """Rectangle spanned by two drag points, grown to the minimum size.

    Returns (x, y, width, height) with the top-left at the smaller corner.
    """
    width = max(abs(x1 - x0), min_width)
    height = max(abs(y1 - y0), min_height)
    return min(x0, x1), min(y0, y1), width, height


class WordStore:
    """One text label per block id."""

    def __init__(self) -> None:
        self._words: Dict[int, Word] = {}

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._words

    def __iter__(self) -> Iterator[Word]:
        return iter(list(self._words.values()))

    def ensure(self, block_id: int, text: str = "") -> Word:
        """Return the word for block_id, creating a blank one if needed."""
        word = self._words.get(block_id)
        if word is None:
            word = Word(block_id=block_id, text=text)
            self._words[block_id] = word
        return word

    def get(self, block_id: int) -> Optional[Word]:
        return self._words.get(block_id)

    def text(self, block_id: int) -> str:
        word = self._words.get(block_id)
        return word.text if word is not None else ""

    def set_text(self, block_id: int, text: str) -> None:
        """Update the label of an existing block."""
        word = self._words.get(block_id)
        if word is None:
            raise KeyError(f"no word slot for block {block_id}")
        word.text = text
        logger.debug(f"word for block {block_id} set to {text!r}")

    def remove(self, block_id: int) -> None:
        self._words.pop(block_id, None)

    def missing(self, block_ids: Iterable[int]) -> List[int]:
        """Block ids (in the given order) whose word is blank or absent."""
        out = []
        for block_id in block_ids:
            word = self._words.get(block_id)
            if word is None or word.is_blank:
                out.append(block_id)
        return out

    def clear(self) -> None:
        self._words.clear()


class BlockManager:
    """Owns the rectangular regions of the diagram.

    Insertion order of the internal dict is creation order; hit-testing scans
    it backwards so later blocks win on overlap.

    Events (via callback registration):
        on_block_deleted(handler): Handler called as handler(block_id)
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        words: WordStore | None = None,
    ) -> None:
        self.config = config if config is not None else EditorConfig()
        self.words = words if words is not None else WordStore()
        self._blocks: Dict[int, Block] = {}
        self._block_deleted_handlers: List[Callable[[int], None]] = []

    # ------------- container protocol -------------

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def __iter__(self) -> Iterator[Block]:
        return iter(list(self._blocks.values()))

    @property
    def blocks(self) -> List[Block]:
        return list(self._blocks.values())

    def ids(self) -> List[int]:
        return list(self._blocks.keys())

    def get(self, block_id: int) -> Optional[Block]:
        return self._blocks.get(block_id)

    def on_block_deleted(self, handler: Callable[[int], None]) -> None:
        """Register callback for block deletion.

        Handler is called with: block_id (int)
        """
        self._block_deleted_handlers.append(handler)

    # ------------- creation / deletion -------------

    def next_id(self) -> int:
        """Smallest positive integer not used by a live block."""
        candidate = 1
        while candidate in self._blocks:
            candidate += 1
        return candidate

    def create(
        self,
        center_x: float,
        center_y: float,
        width: float | None = None,
        height: float | None = None,
    ) -> Block:
        """Create a block centered on (center_x, center_y) with a blank word."""
        w = self.config.default_block_width if width is None else float(width)
        h = self.config.default_block_height if height is None else float(height)
        w = max(w, self.config.min_block_width)
        h = max(h, self.config.min_block_height)

        block = Block(
            id=self.next_id(),
            x=center_x - w / 2.0,
            y=center_y - h / 2.0,
            width=w,
            height=h,
        )
        self._blocks[block.id] = block
        self.words.ensure(block.id)
        logger.info(
            f"created block {block.id}: x={block.x:.1f}, y={block.y:.1f}, "
            f"w={block.width:.1f}, h={block.height:.1f}"
        )
        return block

    def delete(self, block_id: int) -> bool:
        """Remove a block, its word and (through handlers) its arrows."""
        block = self._blocks.pop(block_id, None)
        if block is None:
            return False
        self.words.remove(block_id)
        for handler in list(self._block_deleted_handlers):
            try:
                handler(block_id)
            except Exception:
                logger.exception("Error in block_deleted handler")
        logger.info(f"deleted block {block_id}")
        return True

    def load(self, blocks: Iterable[Block], words: Dict[int, str] | None = None) -> None:
        """Replace all blocks (ids preserved) and their words.

        Blocks smaller than the minimum size are grown to it.
        """
        self.clear()
        words = words or {}
        for block in blocks:
            if block.id in self._blocks:
                raise ValueError(f"duplicate block id {block.id}")
            block.width = max(block.width, float(self.config.min_block_width))
            block.height = max(block.height, float(self.config.min_block_height))
            self._blocks[block.id] = block
            self.words.ensure(block.id, words.get(block.id, ""))
        logger.debug(f"load: {len(self._blocks)} blocks")

    def clear(self) -> None:
        """Delete every block, cascading like delete()."""
        for block_id in list(self._blocks.keys()):
            self.delete(block_id)
        self.words.clear()

    # ------------- hit-testing -------------

    def hit_test(self, x: float, y: float) -> Optional[Block]:
        """Topmost (most recently created) block containing (x, y)."""
        for block in reversed(list(self._blocks.values())):
            if block.contains(x, y):
                return block
        return None

    def edge_at(
        self,
        block: Block,
        x: float,
        y: float,
        tolerance: float | None = None,
    ) -> Optional[Edge]:
        """Resize handle of `block` under (x, y), or None.

        A side is hit when the point is within `tolerance` of it and inside the
        block's box grown by `tolerance`. Two hit sides make a corner; when both
        opposite sides are in range (small blocks), the nearer one wins.
        """
        tol = self.config.edge_tolerance_px if tolerance is None else tolerance

        if not (
            block.x - tol <= x <= block.right + tol
            and block.y - tol <= y <= block.bottom + tol
        ):
            return None

        d_left = abs(x - block.x)
        d_right = abs(x - block.right)
        d_top = abs(y - block.y)
        d_bottom = abs(y - block.bottom)

        horizontal: Optional[str] = None
        if d_left <= tol and d_left <= d_right:
            horizontal = "left"
        elif d_right <= tol:
            horizontal = "right"

        vertical: Optional[str] = None
        if d_top <= tol and d_top <= d_bottom:
            vertical = "top"
        elif d_bottom <= tol:
            vertical = "bottom"

        return Edge.from_sides(horizontal, vertical)

    # ------------- geometry updates -------------

    def drag(self, block_id: int, new_x: float, new_y: float) -> Block:
        """Move a block's top-left corner; unconstrained."""
        block = self._require(block_id)
        block.x = float(new_x)
        block.y = float(new_y)
        return block

    def resize(self, block_id: int, edge: Edge, x: float, y: float) -> bool:
        """Move the given edge (or corner) of a block to the pointer.

        Only the dimension(s) and origin belonging to that edge change. If a
        changed dimension would drop below the minimum, nothing is applied and
        False is returned. A dimension the edge does not touch is not checked,
        so a block that is already too short can still be widened.
        """
        block = self._require(block_id)
        new_x, new_y, new_w, new_h = block.geometry()

        if edge.horizontal == "right":
            new_w = x - block.x
        elif edge.horizontal == "left":
            new_w = block.right - x
            new_x = x

        if edge.vertical == "bottom":
            new_h = y - block.y
        elif edge.vertical == "top":
            new_h = block.bottom - y
            new_y = y

        too_narrow = edge.horizontal is not None and new_w < self.config.min_block_width
        too_short = edge.vertical is not None and new_h < self.config.min_block_height
        if too_narrow or too_short:
            logger.debug(
                f"resize of block {block_id} ignored: {new_w:.1f}x{new_h:.1f} below minimum"
            )
            return False

        block.x, block.y, block.width, block.height = new_x, new_y, new_w, new_h
        return True

    def _require(self, block_id: int) -> Block:
        block = self._blocks.get(block_id)
        if block is None:
            raise KeyError(f"no block with id {block_id}")
        return block
