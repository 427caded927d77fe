# matchwidgets/src/matchwidgets/diagram_editor/playback_widget.py

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from nicegui import ui

from matchwidgets.utils.logging import get_logger

from .config import PlaybackConfig
from .editor_widget import blank_canvas
from .model import ImageInfo
from .playback import PlaybackDiagram, build_playback
from . import svg

logger = get_logger(__name__)


class PlaybackWidget:
    """Read-only view of a saved exercise for the student.

    Blocks show only their number; the words sit in a bank laid out below
    the picture, in block order.
    """

    def __init__(
        self,
        *,
        width: float = 800,
        height: float = 600,
        parent=None,
        config: PlaybackConfig | None = None,
    ) -> None:
        self.config = config if config is not None else PlaybackConfig()
        self.width = float(width)
        self.height = float(height)
        self.diagram: Optional[PlaybackDiagram] = None

        container = parent if parent is not None else ui.element("div").classes("w-full")
        with container:
            self.interactive = (
                ui.interactive_image(blank_canvas(self.width, self.height, "white"), cross=False)
                .classes("w-full")
                .style(self._canvas_style(self.height))
            )

    def show(
        self,
        questions: Iterable[Mapping[str, Any]],
        image: ImageInfo,
        *,
        arrows: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> PlaybackDiagram:
        """Rebuild the exercise for this widget's size and draw it."""
        self.diagram = build_playback(
            questions, image, self.width, self.height, arrows=arrows, config=self.config
        )
        self._render()
        return self.diagram

    def _canvas_style(self, stage_height: float) -> str:
        return f"aspect-ratio: {self.width:.0f} / {stage_height:.0f}; border: 1px solid #ccc;"

    def _render(self) -> None:
        diagram = self.diagram
        if diagram is None:
            return
        cfg = self.config

        parts = [svg.image_svg(diagram.image.url, diagram.transform)]
        for block in diagram.blocks:
            parts.append(
                svg.block_svg(block, stroke=cfg.block_color, fill=cfg.block_fill_color, line_width=2)
            )
        for arrow in diagram.arrows:
            color, thickness = svg.arrow_stroke(arrow, cfg.arrow_style)
            parts.append(svg.arrow_svg(arrow, color=color, thickness=thickness))
        parts.append(svg.word_tiles_svg(diagram.word_bank))

        self.interactive.set_source(blank_canvas(self.width, diagram.stage_height, "white"))
        self.interactive.style(self._canvas_style(diagram.stage_height))
        self.interactive.content = "".join(parts)
        self.interactive.update()
