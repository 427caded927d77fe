# matchwidgets/src/matchwidgets/diagram_editor/config.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class EditorConfig:
    # Viewport (display pixels)
    viewport_width: int = 800
    viewport_height: int = 600
    image_padding: float = 40.0             # total padding around the fitted image

    # Block geometry (display pixels)
    min_block_width: float = 20.0
    min_block_height: float = 20.0
    default_block_width: float = 60.0
    default_block_height: float = 30.0
    edge_tolerance_px: float = 8.0          # edge hit-test tolerance for resize

    # Arrow behavior (display pixels)
    snap_radius_px: float = 60.0            # max distance from a block center to attach
    arrow_hit_tolerance_px: float = 6.0     # click distance to select an arrow
    indicator_offset_px: float = 5.0        # association dot offset from block corner

    # Appearance
    block_color: str = "#007bff"
    block_selected_color: str = "#28a745"
    block_fill_color: str = "rgba(0, 123, 255, 0.15)"
    block_line_width: float = 2.0
    preview_color: str = "#007bff"
    arrow_color: str = "#dc3545"
    arrow_selected_color: str = "#28a745"
    arrow_thickness: float = 3.0
    canvas_background: str = "#f8f9fa"

    warning_text: str = "Arrow must start near a block"

    def arrow_style(self) -> dict[str, Any]:
        """Style dict persisted alongside each exported arrow."""
        return {"color": self.arrow_color, "thickness": self.arrow_thickness}


@dataclass
class PlaybackConfig:
    padding: float = 0.0
    allow_upscale: bool = False             # never enlarge the raster past natural size
    word_margin_px: float = 12.0
    word_line_height_px: float = 38.0
    word_min_width_px: float = 60.0
    word_char_width_px: float = 8.0
    word_extra_width_px: float = 20.0
    min_stage_height_px: float = 400.0
    block_color: str = "#007bff"
    block_fill_color: str = "rgba(0, 123, 255, 0.15)"
    arrow_style: dict[str, Any] = field(
        default_factory=lambda: {"color": "#dc3545", "thickness": 3}
    )
