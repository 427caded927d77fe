# matchwidgets/src/matchwidgets/diagram_editor/state.py

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from matchwidgets.utils.logging import get_logger

from .arrows import ArrowManager
from .blocks import BlockManager, WordStore
from .config import EditorConfig
from .model import ImageInfo
from .serialization import (
    ArrowDict,
    ImportedDiagram,
    QuestionDict,
    export_arrows,
    export_questions,
    import_questions,
)
from .transform import (
    Transform,
    display_to_original,
    fit_image,
    original_to_display,
)

logger = get_logger(__name__)


class EditorState:
    """Everything the editor knows: image, viewport, transform and shapes.

    Shapes are kept in display space. The transform is derived from the image
    and the viewport and is recomputed whenever either changes; existing
    content is carried over through original-image space so it stays on the
    same image pixels.
    """

    def __init__(self, config: EditorConfig | None = None) -> None:
        self.config = config if config is not None else EditorConfig()
        self.words = WordStore()
        self.blocks = BlockManager(self.config, self.words)
        self.arrows = ArrowManager(self.blocks, self.config)

        self.image: Optional[ImageInfo] = None
        self.viewport_width: float = float(self.config.viewport_width)
        self.viewport_height: float = float(self.config.viewport_height)
        self.transform: Optional[Transform] = None

    # ------------- image / viewport -------------

    @property
    def has_image(self) -> bool:
        return self.image is not None and self.transform is not None

    def set_image(self, image: ImageInfo) -> Transform:
        """Install a (new) background image and fit it to the viewport."""
        self.image = image
        self._apply_transform(self._fit())
        logger.info(
            f"image set: {image.url} {image.original_width}x{image.original_height}, "
            f"scale={self.transform.scale:.4f}"
        )
        return self.transform

    def set_viewport(self, width: float, height: float) -> bool:
        """Record a new viewport size and refit; returns True if anything moved.

        Calling this repeatedly with the same size is a no-op.
        """
        self.viewport_width = float(width)
        self.viewport_height = float(height)
        if self.image is None:
            return False
        new_transform = self._fit()
        if new_transform == self.transform:
            return False
        self._apply_transform(new_transform)
        logger.debug(f"viewport {width}x{height}: scale={new_transform.scale:.4f}")
        return True

    def _fit(self) -> Transform:
        assert self.image is not None
        return fit_image(
            self.image.original_width,
            self.image.original_height,
            self.viewport_width,
            self.viewport_height,
            self.config.image_padding,
        )

    def _apply_transform(self, new_transform: Transform) -> None:
        old_transform = self.transform
        self.transform = new_transform
        if old_transform is None or old_transform == new_transform:
            return

        def remap(x: float, y: float) -> tuple[float, float]:
            ox, oy = display_to_original(x, y, old_transform)
            return original_to_display(ox, oy, new_transform)

        ratio = new_transform.scale / old_transform.scale
        for block in self.blocks:
            block.x, block.y = remap(block.x, block.y)
            block.width *= ratio
            block.height *= ratio
        for arrow in self.arrows:
            arrow.start_x, arrow.start_y = remap(arrow.start_x, arrow.start_y)
            arrow.end_x, arrow.end_y = remap(arrow.end_x, arrow.end_y)

    def _require_image(self) -> tuple[ImageInfo, Transform]:
        if self.image is None or self.transform is None:
            raise RuntimeError("no image loaded")
        return self.image, self.transform

    # ------------- serialization -------------

    def export_questions(self) -> List[QuestionDict]:
        image, transform = self._require_image()
        return export_questions(
            self.blocks,
            self.words,
            self.arrows,
            transform,
            image.original_width,
            image.original_height,
            arrow_style=self.config.arrow_style(),
        )

    def export_arrows(self) -> List[ArrowDict]:
        image, transform = self._require_image()
        return export_arrows(
            self.arrows,
            transform,
            image.original_width,
            image.original_height,
            arrow_style=self.config.arrow_style(),
        )

    def load_questions(
        self,
        questions: Iterable[Mapping[str, Any]],
        *,
        arrows: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> ImportedDiagram:
        """Replace the current content with a saved exercise."""
        image, transform = self._require_image()
        diagram = import_questions(
            questions,
            transform,
            image.original_width,
            image.original_height,
            arrows=arrows,
        )
        self.blocks.load(diagram.blocks, diagram.words)
        self.arrows.load(diagram.arrows)
        return diagram

    def clear(self) -> None:
        """Remove all shapes; the image stays."""
        self.blocks.clear()
        self.arrows.clear()

    def reset(self) -> None:
        """Remove all shapes and the image, back to the empty editor."""
        self.clear()
        self.image = None
        self.transform = None
        logger.info("editor reset")
