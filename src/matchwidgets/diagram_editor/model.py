"""Shape and image types for the matching-exercise diagram editor.

Blocks and arrows live in display space (viewport pixels). Conversion to the
original image and to relative percentages happens only at the
serialization boundary, see serialization.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

Point = Tuple[float, float]


class ShapeKind(Enum):
    """Discriminator for the Block/Arrow shape union."""
    BLOCK = "block"
    ARROW = "arrow"


class Mode(Enum):
    """Editor interaction modes; pointer events are dispatched per mode."""
    CREATE = "create"
    EDIT = "edit"
    ARROW = "arrow"


class Edge(Enum):
    """Resize handle of a block: one side or a corner."""
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"

    @property
    def horizontal(self) -> Optional[str]:
        """'left', 'right' or None."""
        if self in (Edge.LEFT, Edge.TOP_LEFT, Edge.BOTTOM_LEFT):
            return "left"
        if self in (Edge.RIGHT, Edge.TOP_RIGHT, Edge.BOTTOM_RIGHT):
            return "right"
        return None

    @property
    def vertical(self) -> Optional[str]:
        """'top', 'bottom' or None."""
        if self in (Edge.TOP, Edge.TOP_LEFT, Edge.TOP_RIGHT):
            return "top"
        if self in (Edge.BOTTOM, Edge.BOTTOM_LEFT, Edge.BOTTOM_RIGHT):
            return "bottom"
        return None

    @classmethod
    def from_sides(cls, horizontal: Optional[str], vertical: Optional[str]) -> Optional["Edge"]:
        if horizontal is None and vertical is None:
            return None
        if horizontal is None:
            return cls(vertical)
        if vertical is None:
            return cls(horizontal)
        return cls(f"{vertical}_{horizontal}")

    @property
    def cursor(self) -> str:
        """CSS cursor shown while hovering this handle."""
        if self in (Edge.LEFT, Edge.RIGHT):
            return "ew-resize"
        if self in (Edge.TOP, Edge.BOTTOM):
            return "ns-resize"
        if self in (Edge.TOP_LEFT, Edge.BOTTOM_RIGHT):
            return "nwse-resize"
        return "nesw-resize"


@dataclass(frozen=True)
class ImageInfo:
    """Background image; immutable once loaded."""

    url: str
    original_width: int
    original_height: int

    def __post_init__(self) -> None:
        if self.original_width <= 0 or self.original_height <= 0:
            raise ValueError(
                f"image size must be positive, got {self.original_width}x{self.original_height}"
            )


@dataclass
class Block:
    """Rectangular region in display coordinates."""

    id: int
    x: float
    y: float
    width: float
    height: float
    kind: ShapeKind = field(default=ShapeKind.BLOCK, init=False, repr=False)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def geometry(self) -> tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height


@dataclass
class Word:
    """Text label attached to exactly one block."""

    block_id: int
    text: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass
class Arrow:
    """Directed segment whose start is anchored to a block center."""

    id: int
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    associated_block_id: int
    association_type: str = "start"
    # color/thickness saved with the arrow; None means the configured style
    style: Optional[Dict[str, Any]] = None
    kind: ShapeKind = field(default=ShapeKind.ARROW, init=False, repr=False)

    @property
    def start(self) -> Point:
        return self.start_x, self.start_y

    @property
    def end(self) -> Point:
        return self.end_x, self.end_y


Shape = Union[Block, Arrow]


@dataclass(frozen=True)
class ShapeRef:
    """Reference to a shape by kind and id (what the selection holds)."""

    kind: ShapeKind
    id: int

    @classmethod
    def of(cls, shape: Shape) -> "ShapeRef":
        return cls(kind=shape.kind, id=shape.id)
