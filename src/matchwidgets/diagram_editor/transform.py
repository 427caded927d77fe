# matchwidgets/src/matchwidgets/diagram_editor/transform.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

DEFAULT_VIEWPORT_W = 800
DEFAULT_VIEWPORT_H = 600
DEFAULT_PADDING = 40.0


@dataclass(frozen=True)
class Transform:
    """Placement of the background image inside the viewport.

    Display coordinates are viewport pixels. Original coordinates are pixels
    of the unscaled source image.
    """

    scale: float
    offset_x: float
    offset_y: float
    display_width: float
    display_height: float

    def contains(self, x: float, y: float) -> bool:
        """True if display point (x, y) lies on the image."""
        return (
            self.offset_x <= x <= self.offset_x + self.display_width
            and self.offset_y <= y <= self.offset_y + self.display_height
        )


def fit_image(
    original_width: float,
    original_height: float,
    viewport_width: float,
    viewport_height: float,
    padding: float = DEFAULT_PADDING,
    *,
    allow_upscale: bool = True,
) -> Transform:
    """Fit an image inside viewport-minus-padding, aspect preserved, centered.

    A viewport that has not been laid out yet (zero or negative size) is
    replaced by the 800x600 default; callers recompute once a real measurement
    arrives.
    """
    if original_width <= 0 or original_height <= 0:
        raise ValueError(
            f"image size must be positive, got {original_width}x{original_height}"
        )

    if viewport_width <= 0 or viewport_height <= 0:
        viewport_width = DEFAULT_VIEWPORT_W
        viewport_height = DEFAULT_VIEWPORT_H

    # Floor at one pixel so an oversized padding still gives scale > 0
    available_w = max(1.0, float(viewport_width) - padding)
    available_h = max(1.0, float(viewport_height) - padding)

    scale = min(available_w / original_width, available_h / original_height)
    if not allow_upscale:
        scale = min(scale, 1.0)

    display_w = original_width * scale
    display_h = original_height * scale

    return Transform(
        scale=scale,
        offset_x=(viewport_width - display_w) / 2.0,
        offset_y=(viewport_height - display_h) / 2.0,
        display_width=display_w,
        display_height=display_h,
    )


# ------------------ point conversions ------------------


def display_to_original(x: float, y: float, transform: Transform) -> tuple[float, float]:
    """Display coords -> original-image coords."""
    return (
        (x - transform.offset_x) / transform.scale,
        (y - transform.offset_y) / transform.scale,
    )


def original_to_display(x: float, y: float, transform: Transform) -> tuple[float, float]:
    """Original-image coords -> display coords."""
    return (
        x * transform.scale + transform.offset_x,
        y * transform.scale + transform.offset_y,
    )


def to_relative(value: float, dimension: float) -> float:
    """Original-space value -> percentage (0-100) of the image dimension."""
    return value / dimension * 100.0


def from_relative(value: float, dimension: float) -> float:
    """Percentage of the image dimension -> original-space value."""
    return value / 100.0 * dimension


class CoordinateConverter:
    """Bidirectional display <-> original <-> relative mapping.

    Wraps a Transform and the original image size so callers do not have to
    thread both through every call.
    """

    def __init__(self, transform: Transform, image_width: float, image_height: float) -> None:
        if image_width <= 0 or image_height <= 0:
            raise ValueError("image size must be positive")
        self.transform = transform
        self.image_width = float(image_width)
        self.image_height = float(image_height)

    # points

    def to_original(self, x: float, y: float) -> Tuple[float, float]:
        return display_to_original(x, y, self.transform)

    def to_display(self, x: float, y: float) -> Tuple[float, float]:
        return original_to_display(x, y, self.transform)

    def to_relative(self, x: float, y: float) -> Tuple[float, float]:
        """Original point -> relative percentages."""
        return to_relative(x, self.image_width), to_relative(y, self.image_height)

    def from_relative(self, rel_x: float, rel_y: float) -> Tuple[float, float]:
        """Relative percentages -> original point."""
        return from_relative(rel_x, self.image_width), from_relative(rel_y, self.image_height)

    # lengths (no offset)

    def length_to_original(self, length: float) -> float:
        return length / self.transform.scale

    def length_to_display(self, length: float) -> float:
        return length * self.transform.scale
