from __future__ import annotations

import tempfile
from pathlib import Path

from nicegui import app, ui

from matchwidgets.diagram_editor import (
    InMemoryPersistence,
    LocalImageUploader,
    MatchingEditorWidget,
    PlaybackWidget,
    parse_test_payload,
)
from matchwidgets.utils.logging import configure_logging


if __name__ in {"__main__", "__mp_main__"}:
    configure_logging(level="INFO")

    upload_dir = Path(tempfile.gettempdir()) / "matchwidgets_uploads"
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.add_static_files("/uploads", str(upload_dir))

    uploader = LocalImageUploader(upload_dir, url_prefix="/uploads")
    persistence = InMemoryPersistence()

    with ui.row().classes("w-full gap-6 no-wrap"):
        with ui.column().classes("items-start gap-2 w-1/2"):
            ui.label("Matching exercise editor").classes("text-lg font-bold")
            editor = MatchingEditorWidget(
                uploader=uploader,
                persistence=persistence,
                test_name="Demo exercise",
            )

        with ui.column().classes("items-start gap-2 w-1/2"):
            ui.label("Student view").classes("text-lg font-bold")
            playback = PlaybackWidget(width=800, height=600)

    def on_saved(payload: dict, result) -> None:
        image_url, questions, arrows = parse_test_payload(persistence.load(result.test_id))
        playback.show(questions, uploader.image_info(image_url), arrows=arrows)

    editor.on_saved(on_saved)

    ui.run(reload=False)
