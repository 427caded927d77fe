# tests/diagram_editor/conftest.py
from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure `matchwidgets/src` is importable when running tests from the repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists():
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def png_bytes() -> bytes:
    """A 160x120 PNG encoded in memory."""
    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGB", (160, 120), "white").save(buf, format="PNG")
    return buf.getvalue()
