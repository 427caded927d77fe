"""Matching-exercise diagram editor: blocks, words and arrows over a picture."""

from .config import EditorConfig, PlaybackConfig
from .controller import EditorController, Interaction
from .editor_widget import MatchingEditorWidget
from .model import Arrow, Block, Edge, ImageInfo, Mode, ShapeKind, ShapeRef, Word
from .playback import PlaybackDiagram, WordTile, build_playback, layout_word_bank
from .playback_widget import PlaybackWidget
from .serialization import (
    ArrowDict,
    ExportValidationError,
    QuestionDict,
    export_arrows,
    export_questions,
    import_questions,
)
from .services import (
    ExercisePersistence,
    ImageUploader,
    InMemoryPersistence,
    LocalImageUploader,
    SaveResult,
    UploadResult,
    build_test_payload,
    parse_test_payload,
)
from .state import EditorState
from .transform import CoordinateConverter, Transform, fit_image

__all__ = [
    "Arrow",
    "ArrowDict",
    "Block",
    "CoordinateConverter",
    "Edge",
    "EditorConfig",
    "EditorController",
    "EditorState",
    "ExercisePersistence",
    "ExportValidationError",
    "ImageInfo",
    "ImageUploader",
    "InMemoryPersistence",
    "Interaction",
    "LocalImageUploader",
    "MatchingEditorWidget",
    "Mode",
    "PlaybackConfig",
    "PlaybackDiagram",
    "PlaybackWidget",
    "QuestionDict",
    "SaveResult",
    "ShapeKind",
    "ShapeRef",
    "Transform",
    "UploadResult",
    "Word",
    "WordTile",
    "build_playback",
    "build_test_payload",
    "export_arrows",
    "export_questions",
    "fit_image",
    "import_questions",
    "layout_word_bank",
    "parse_test_payload",
]
