# matchwidgets/tests/diagram_editor/test_logging.py

from __future__ import annotations

import logging
import sys

import pytest

from matchwidgets.utils.logging import LOG_LEVEL_ENV, configure_logging, get_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("matchwidgets")
    saved = (logger.level, logger.handlers[:])
    yield logger
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    logger.setLevel(saved[0])
    for h in saved[1]:
        logger.addHandler(h)


def _stderr_handlers(logger: logging.Logger) -> list:
    return [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
    ]


def test_module_loggers_are_children_of_package_logger():
    assert get_logger().name == "matchwidgets"
    assert get_logger("matchwidgets.diagram_editor.blocks").parent.name.startswith("matchwidgets")


def test_configure_logging_level_from_env(clean_logger, monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "DEBUG")
    configure_logging(force=True)

    assert clean_logger.level == logging.DEBUG
    assert len(_stderr_handlers(clean_logger)) == 1


def test_configure_logging_does_not_duplicate_handlers(clean_logger):
    configure_logging("INFO", force=True)
    configure_logging("WARNING")

    assert len(_stderr_handlers(clean_logger)) == 1
    assert clean_logger.level == logging.WARNING


def test_second_call_updates_existing_handler_level(clean_logger):
    configure_logging("DEBUG", force=True)
    configure_logging("ERROR")

    (handler,) = _stderr_handlers(clean_logger)
    assert handler.level == logging.ERROR


def test_force_replaces_handler_and_format(clean_logger):
    configure_logging("INFO", force=True)
    first = _stderr_handlers(clean_logger)[0]
    configure_logging("INFO", fmt="%(message)s", force=True)

    (handler,) = _stderr_handlers(clean_logger)
    assert handler is not first
    assert handler.formatter._fmt == "%(message)s"
