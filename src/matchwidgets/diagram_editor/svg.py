# matchwidgets/src/matchwidgets/diagram_editor/svg.py
"""SVG fragments for the editor and playback overlays (display coords)."""

from __future__ import annotations

import math
from html import escape
from typing import Any, Iterable, Mapping, Optional

from .model import Arrow, Block
from .transform import Transform


def image_svg(url: str, transform: Transform) -> str:
    return (
        f'<image href="{escape(url, quote=True)}" x="{transform.offset_x}" y="{transform.offset_y}" '
        f'width="{transform.display_width}" height="{transform.display_height}" '
        f'preserveAspectRatio="none" />'
    )


def block_svg(
    block: Block,
    *,
    stroke: str,
    fill: str,
    line_width: float,
    label: Optional[str] = None,
) -> str:
    """Rounded rect plus the id badge above its top-left corner."""
    parts = [
        f'<rect x="{block.x}" y="{block.y}" width="{block.width}" height="{block.height}" '
        f'rx="6" stroke="{stroke}" stroke-width="{line_width}" fill="{fill}" />',
        f'<rect x="{block.x}" y="{block.y - 26}" width="24" height="22" rx="4" fill="{stroke}" />',
        f'<text x="{block.x + 12}" y="{block.y - 10}" text-anchor="middle" '
        f'font-family="Arial, sans-serif" font-size="14" font-weight="bold" fill="white">{block.id}</text>',
    ]
    if label:
        parts.append(
            f'<text x="{block.x + block.width / 2}" y="{block.y + block.height / 2}" '
            f'text-anchor="middle" dominant-baseline="middle" font-family="Arial" '
            f'font-size="{min(12.0, block.width / 8)}" fill="#2c3e50">{escape(label)}</text>'
        )
    return "".join(parts)


def arrow_head_points(x0: float, y0: float, x1: float, y1: float, size: float = 10.0) -> str:
    """Triangle at (x1, y1) pointing away from (x0, y0), as an SVG points list."""
    angle = math.atan2(y1 - y0, x1 - x0)
    back_x = x1 - size * math.cos(angle)
    back_y = y1 - size * math.sin(angle)
    half = size / 2.0
    left = (back_x + half * math.sin(angle), back_y - half * math.cos(angle))
    right = (back_x - half * math.sin(angle), back_y + half * math.cos(angle))
    return f"{x1},{y1} {left[0]},{left[1]} {right[0]},{right[1]}"


def arrow_stroke(arrow: Arrow, default: Mapping[str, Any]) -> tuple[str, float]:
    """(color, thickness) for an arrow: its own style over `default`."""
    style = {**default, **(arrow.style or {})}
    try:
        thickness = float(style.get("thickness", 3))
    except (TypeError, ValueError):
        thickness = float(default.get("thickness", 3))
    return escape(str(style.get("color", "#dc3545")), quote=True), thickness


def arrow_svg(arrow: Arrow, *, color: str, thickness: float) -> str:
    x0, y0, x1, y1 = arrow.start_x, arrow.start_y, arrow.end_x, arrow.end_y
    return (
        f'<line x1="{x0}" y1="{y0}" x2="{x1}" y2="{y1}" stroke="{color}" '
        f'stroke-width="{thickness}" />'
        f'<polygon points="{arrow_head_points(x0, y0, x1, y1)}" fill="{color}" />'
    )


def indicator_svg(x: float, y: float, color: str) -> str:
    return f'<circle cx="{x}" cy="{y}" r="4" fill="{color}" stroke="white" stroke-width="1" />'


def preview_rect_svg(rect: tuple[float, float, float, float], color: str) -> str:
    x, y, w, h = rect
    return (
        f'<rect x="{x}" y="{y}" width="{w}" height="{h}" stroke="{color}" stroke-width="2" '
        f'stroke-dasharray="5,5" fill="{color}" fill-opacity="0.3" />'
    )


def preview_line_svg(line: tuple[float, float, float, float], color: str, thickness: float) -> str:
    x0, y0, x1, y1 = line
    return (
        f'<line x1="{x0}" y1="{y0}" x2="{x1}" y2="{y1}" stroke="{color}" '
        f'stroke-width="{thickness}" stroke-dasharray="5,5" opacity="0.6" />'
    )


def handles_svg(block: Block, color: str, size: float = 8.0) -> str:
    """Corner and edge-midpoint resize handles of a selected block."""
    xs = (block.x, block.x + block.width / 2, block.right)
    ys = (block.y, block.y + block.height / 2, block.bottom)
    parts = []
    for i, hx in enumerate(xs):
        for j, hy in enumerate(ys):
            if i == 1 and j == 1:
                continue
            parts.append(
                f'<rect x="{hx - size / 2}" y="{hy - size / 2}" width="{size}" height="{size}" '
                f'fill="white" stroke="{color}" stroke-width="1" />'
            )
    return "".join(parts)


def word_tiles_svg(tiles: Iterable, *, height: float = 28.0) -> str:
    parts = []
    for tile in tiles:
        parts.append(
            f'<rect x="{tile.x}" y="{tile.y}" width="{tile.width}" height="{height}" rx="6" '
            f'fill="white" stroke="#6c757d" stroke-width="1" />'
            f'<text x="{tile.x + tile.width / 2}" y="{tile.y + height / 2}" text-anchor="middle" '
            f'dominant-baseline="middle" font-family="Arial" font-size="14" fill="#2c3e50">'
            f'{escape(tile.text)}</text>'
        )
    return "".join(parts)
