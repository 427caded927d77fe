"""Conversion between the live diagram and the persisted question schema.

Export writes every block (and its first arrow) twice: in original-image
pixels and as percentages of the original image size. Import prefers the
percentages, so a saved exercise renders correctly at any viewport size, and
falls back to the absolute original-space values for older records.

Schema of one question::

    {
        "question_id": 1,
        "word": "heart",
        "block_coordinates": {
            "x": ..., "y": ..., "width": ..., "height": ...,          # original px
            "rel_x": ..., "rel_y": ..., "rel_width": ..., "rel_height": ...,  # percent
            "image_width": 1600, "image_height": 1200,
        },
        "has_arrow": True,
        "arrow": {
            "start_x": ..., "start_y": ..., "end_x": ..., "end_y": ...,
            "rel_start_x": ..., "rel_start_y": ..., "rel_end_x": ..., "rel_end_y": ...,
            "image_width": 1600, "image_height": 1200,
            "style": {"color": "#dc3545", "thickness": 3},
        },
    }
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, TypedDict

from matchwidgets.utils.logging import get_logger

from .model import Arrow, Block, Word
from .transform import CoordinateConverter, Transform

logger = get_logger(__name__)

DEFAULT_ARROW_STYLE: Dict[str, Any] = {"color": "#dc3545", "thickness": 3}

# Fallback geometry (original px) for records with unusable coordinates
_FALLBACK_COORDS = {"x": 0.0, "y": 0.0, "width": 30.0, "height": 10.0}


class BlockCoordinatesDict(TypedDict):
    x: float
    y: float
    width: float
    height: float
    rel_x: float
    rel_y: float
    rel_width: float
    rel_height: float
    image_width: int
    image_height: int


class ArrowDict(TypedDict, total=False):
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    rel_start_x: float
    rel_start_y: float
    rel_end_x: float
    rel_end_y: float
    image_width: int
    image_height: int
    style: Dict[str, Any]
    arrow_style: Dict[str, Any]
    associated_block_id: int
    association_type: str


class QuestionDict(TypedDict, total=False):
    question_id: int
    word: str
    block_coordinates: BlockCoordinatesDict
    has_arrow: bool
    arrow: ArrowDict


class ExportValidationError(ValueError):
    """Raised when the diagram cannot be exported; lists offending blocks."""

    def __init__(self, missing_block_ids: List[int]) -> None:
        self.missing_block_ids = list(missing_block_ids)
        ids = ", ".join(str(i) for i in self.missing_block_ids)
        super().__init__(f"Please enter a word for block(s) {ids} before saving.")


@dataclass
class ImportedDiagram:
    """Display-space content rebuilt from persisted questions."""

    blocks: List[Block] = field(default_factory=list)
    words: Dict[int, str] = field(default_factory=dict)
    arrows: List[Arrow] = field(default_factory=list)
    pruned_arrows: List[Dict[str, Any]] = field(default_factory=list)


# ------------------ export ------------------


def _arrow_to_dict(arrow: Arrow, conv: CoordinateConverter) -> ArrowDict:
    sx, sy = conv.to_original(arrow.start_x, arrow.start_y)
    ex, ey = conv.to_original(arrow.end_x, arrow.end_y)
    rsx, rsy = conv.to_relative(sx, sy)
    rex, rey = conv.to_relative(ex, ey)
    return {
        "start_x": sx,
        "start_y": sy,
        "end_x": ex,
        "end_y": ey,
        "rel_start_x": rsx,
        "rel_start_y": rsy,
        "rel_end_x": rex,
        "rel_end_y": rey,
        "image_width": int(conv.image_width),
        "image_height": int(conv.image_height),
    }


def block_to_coordinates(
    block: Block,
    transform: Transform,
    image_width: int,
    image_height: int,
) -> BlockCoordinatesDict:
    """Original-space and relative coordinates of a display-space block."""
    conv = CoordinateConverter(transform, image_width, image_height)
    ox, oy = conv.to_original(block.x, block.y)
    ow = conv.length_to_original(block.width)
    oh = conv.length_to_original(block.height)
    rel_x, rel_y = conv.to_relative(ox, oy)
    rel_w, rel_h = conv.to_relative(ow, oh)
    return {
        "x": ox,
        "y": oy,
        "width": ow,
        "height": oh,
        "rel_x": rel_x,
        "rel_y": rel_y,
        "rel_width": rel_w,
        "rel_height": rel_h,
        "image_width": image_width,
        "image_height": image_height,
    }


def export_questions(
    blocks: Iterable[Block],
    words: Iterable[Word],
    arrows: Iterable[Arrow],
    transform: Transform,
    image_width: int,
    image_height: int,
    *,
    arrow_style: Optional[Mapping[str, Any]] = None,
) -> List[QuestionDict]:
    """One question per block, in block creation order.

    question_id is the block's id. When a block has several arrows, the
    oldest one is embedded in its question; all of them are available through
    export_arrows(). An arrow carrying its own style keeps it; the others
    get `arrow_style`.

    Raises:
        ExportValidationError: if any block has a blank word.
    """
    blocks = list(blocks)
    texts = {w.block_id: w.text for w in words}
    missing = [b.id for b in blocks if not texts.get(b.id, "").strip()]
    if missing:
        raise ExportValidationError(missing)

    style = dict(arrow_style) if arrow_style is not None else dict(DEFAULT_ARROW_STYLE)

    conv = CoordinateConverter(transform, image_width, image_height)
    first_arrow: Dict[int, Arrow] = {}
    for arrow in arrows:
        first_arrow.setdefault(arrow.associated_block_id, arrow)

    questions: List[QuestionDict] = []
    for block in blocks:
        question: QuestionDict = {
            "question_id": block.id,
            "word": texts[block.id].strip(),
            "block_coordinates": block_to_coordinates(
                block, transform, image_width, image_height
            ),
            "has_arrow": False,
        }
        arrow = first_arrow.get(block.id)
        if arrow is not None:
            arrow_dict = _arrow_to_dict(arrow, conv)
            arrow_dict["style"] = dict(arrow.style or style)
            question["has_arrow"] = True
            question["arrow"] = arrow_dict
        questions.append(question)

    logger.info(
        f"exported {len(questions)} questions, "
        f"{sum(1 for q in questions if q['has_arrow'])} with arrows"
    )
    return questions


def export_arrows(
    arrows: Iterable[Arrow],
    transform: Transform,
    image_width: int,
    image_height: int,
    *,
    arrow_style: Optional[Mapping[str, Any]] = None,
) -> List[ArrowDict]:
    """Every arrow as a top-level record, including its block association."""
    style = dict(arrow_style) if arrow_style is not None else dict(DEFAULT_ARROW_STYLE)
    conv = CoordinateConverter(transform, image_width, image_height)
    records: List[ArrowDict] = []
    for arrow in arrows:
        record = _arrow_to_dict(arrow, conv)
        record["associated_block_id"] = arrow.associated_block_id
        record["association_type"] = arrow.association_type
        record["arrow_style"] = dict(arrow.style or style)
        records.append(record)
    return records


# ------------------ import ------------------


def _num(value: Any, default: Optional[float] = None) -> Optional[float]:
    """float(value), or default for None, non-numeric or non-finite input."""
    if value is None or isinstance(value, bool):
        return default
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(out):
        return default
    return out


def _parse_style(raw: Any) -> Optional[Dict[str, Any]]:
    """Arrow style from a dict or a JSON-encoded dict, else None."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"ignoring unparseable arrow style {raw!r}")
            return None
    if isinstance(raw, Mapping):
        return dict(raw)
    return None


def _parse_coordinates(raw: Any, question_id: Any) -> Dict[str, Any]:
    """block_coordinates may arrive as a dict or as a JSON string."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"question {question_id!r}: unparseable block_coordinates")
            return dict(_FALLBACK_COORDS)
    if not isinstance(raw, dict):
        logger.warning(f"question {question_id!r}: missing block_coordinates")
        return dict(_FALLBACK_COORDS)
    return raw


def _positive(value: Optional[float]) -> Optional[float]:
    return value if value is not None and value > 0 else None


def _original_rect(
    coords: Mapping[str, Any],
    conv: CoordinateConverter,
) -> tuple[float, float, float, float]:
    """(x, y, width, height) in original px; relative values win.

    Relative values are used only when all four are present and the size is
    positive. A missing or non-positive absolute size falls back to 30x10.
    """
    rx, ry = _num(coords.get("rel_x")), _num(coords.get("rel_y"))
    rw = _positive(_num(coords.get("rel_width")))
    rh = _positive(_num(coords.get("rel_height")))
    if None not in (rx, ry, rw, rh):
        x, y = conv.from_relative(rx, ry)  # type: ignore[arg-type]
        w, h = conv.from_relative(rw, rh)  # type: ignore[arg-type]
        return x, y, w, h

    x = _num(coords.get("x"), _FALLBACK_COORDS["x"])
    y = _num(coords.get("y"), _FALLBACK_COORDS["y"])
    w = _positive(_num(coords.get("width"))) or _FALLBACK_COORDS["width"]
    h = _positive(_num(coords.get("height"))) or _FALLBACK_COORDS["height"]
    return x, y, w, h  # type: ignore[return-value]


def _original_segment(
    data: Mapping[str, Any],
    conv: CoordinateConverter,
) -> Optional[tuple[float, float, float, float]]:
    """(start_x, start_y, end_x, end_y) in original px, or None if unusable."""
    rel = [_num(data.get(k)) for k in ("rel_start_x", "rel_start_y", "rel_end_x", "rel_end_y")]
    if all(v is not None for v in rel):
        sx, sy, ex, ey = rel  # type: ignore[misc]
        return (*conv.from_relative(sx, sy), *conv.from_relative(ex, ey))
    absolute = [_num(data.get(k)) for k in ("start_x", "start_y", "end_x", "end_y")]
    if all(v is not None for v in absolute):
        return tuple(absolute)  # type: ignore[return-value]
    return None


def _id_key(value: Any) -> Optional[str]:
    """Normalized lookup key for ids written as int or numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _allocate_ids(questions: List[Mapping[str, Any]]) -> List[int]:
    """Block id per question: question_id when usable, else smallest free id."""
    ids: List[Optional[int]] = []
    used: set[int] = set()
    for q in questions:
        qid = q.get("question_id")
        candidate: Optional[int] = None
        if isinstance(qid, int) and not isinstance(qid, bool):
            candidate = qid
        elif isinstance(qid, str) and qid.strip().isdigit():
            candidate = int(qid)
        if candidate is not None and candidate > 0 and candidate not in used:
            used.add(candidate)
            ids.append(candidate)
        else:
            ids.append(None)

    out: List[int] = []
    next_free = 1
    for block_id in ids:
        if block_id is None:
            while next_free in used:
                next_free += 1
            block_id = next_free
            used.add(block_id)
            logger.warning(f"reallocated invalid or duplicate question id to {block_id}")
        out.append(block_id)
    return out


def import_questions(
    questions: Iterable[Mapping[str, Any]],
    transform: Transform,
    image_width: int,
    image_height: int,
    *,
    arrows: Optional[Iterable[Mapping[str, Any]]] = None,
) -> ImportedDiagram:
    """Rebuild display-space blocks, words and arrows.

    If `arrows` (top-level arrow records) is given it is used instead of the
    arrows embedded in the questions. Records whose associated_block_id does
    not name an imported block are pruned and reported in `pruned_arrows`.
    An arrow keeps the style it was saved with (`style` or `arrow_style`,
    as a dict or a JSON string).
    """
    conv = CoordinateConverter(transform, image_width, image_height)
    questions = [q for q in questions if isinstance(q, Mapping)]
    block_ids = _allocate_ids(questions)
    diagram = ImportedDiagram()

    # question_id as written in the payload -> block id actually used
    id_map: Dict[str, int] = {}
    embedded: List[tuple[int, Mapping[str, Any]]] = []

    for q, block_id in zip(questions, block_ids):
        qid = q.get("question_id")
        key = _id_key(qid)
        if key is not None and key not in id_map:
            id_map[key] = block_id

        coords = _parse_coordinates(q.get("block_coordinates"), qid)
        ox, oy, ow, oh = _original_rect(coords, conv)
        dx, dy = conv.to_display(ox, oy)

        diagram.blocks.append(
            Block(
                id=block_id,
                x=dx,
                y=dy,
                width=conv.length_to_display(ow),
                height=conv.length_to_display(oh),
            )
        )
        word = q.get("word")
        diagram.words[block_id] = word if isinstance(word, str) else ""

        arrow_data = q.get("arrow")
        if q.get("has_arrow") and isinstance(arrow_data, Mapping):
            embedded.append((block_id, arrow_data))

    if arrows is not None:
        candidates: List[tuple[Optional[int], Mapping[str, Any]]] = []
        for record in arrows:
            if not isinstance(record, Mapping):
                continue
            key = _id_key(record.get("associated_block_id"))
            candidates.append((id_map.get(key) if key is not None else None, record))
    else:
        candidates = [(block_id, data) for block_id, data in embedded]

    for block_id, data in candidates:
        segment = _original_segment(data, conv)
        if block_id is None or segment is None:
            diagram.pruned_arrows.append(dict(data))
            continue
        sx, sy, ex, ey = segment
        start = conv.to_display(sx, sy)
        end = conv.to_display(ex, ey)
        assoc = data.get("association_type")
        style = _parse_style(data.get("style"))
        if style is None:
            style = _parse_style(data.get("arrow_style"))
        diagram.arrows.append(
            Arrow(
                id=len(diagram.arrows) + 1,
                start_x=start[0],
                start_y=start[1],
                end_x=end[0],
                end_y=end[1],
                associated_block_id=block_id,
                association_type=assoc if isinstance(assoc, str) else "start",
                style=style,
            )
        )

    if diagram.pruned_arrows:
        logger.warning(f"import pruned {len(diagram.pruned_arrows)} orphan arrow record(s)")
    logger.info(
        f"imported {len(diagram.blocks)} blocks and {len(diagram.arrows)} arrows"
    )
    return diagram
