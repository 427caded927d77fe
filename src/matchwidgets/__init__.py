"""
matchwidgets: NiceGUI widgets for authoring and playing matching exercises.

This package provides:
- MatchingEditorWidget: draw numbered blocks and arrows over a picture
- PlaybackWidget: read-only view of a saved exercise with its word bank
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from matchwidgets.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library (imported by other applications), logging is
automatically handled by the parent application's configuration.
"""

import logging

from matchwidgets.utils.logging import configure_logging, get_logger

from matchwidgets.diagram_editor import (
    EditorConfig,
    MatchingEditorWidget,
    PlaybackConfig,
    PlaybackWidget,
)

# Ensure matchwidgets logger has NullHandler so logs don't propagate to root
# when no application has configured logging. Applications/demos call
# configure_logging() to replace this with a real handler.
_logger = logging.getLogger("matchwidgets")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "EditorConfig",
    "MatchingEditorWidget",
    "PlaybackConfig",
    "PlaybackWidget",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
