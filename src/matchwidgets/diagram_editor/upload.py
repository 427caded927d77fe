# matchwidgets/src/matchwidgets/diagram_editor/upload.py
"""Read the bytes of a NiceGUI upload.

NiceGUI's ``ui.upload`` hands over an event whose ``e.file`` (older releases:
``e.content`` plus ``e.name``) is one of:

- **LargeFileUpload**: already spooled to disk, exposes ``._path``.
- **SmallFileUpload**: in memory, exposes async ``.read()`` or ``._data``.

The editor only needs the raw bytes and the client file name, which it hands
to the ImageUploader collaborator.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Tuple


def _as_path(value: Any) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str) and value:
        return Path(value)
    return None


def upload_summary(upload_file: Any) -> str:
    """One-line description of an upload object, without dumping bytes."""
    cls = type(upload_file).__name__
    name = getattr(upload_file, "name", None)
    ctype = getattr(upload_file, "content_type", None)
    data = getattr(upload_file, "_data", None)
    data_len = len(data) if isinstance(data, (bytes, bytearray)) else None
    return f"{cls}(name={name!r}, content_type={ctype!r}, data_len={data_len})"


async def read_upload_bytes(e: Any) -> Tuple[bytes, str]:
    """(data, filename) from a ``ui.upload`` event.

    Raises:
        RuntimeError: if the event carries no readable file.
    """
    upload_file = getattr(e, "file", None)
    if upload_file is None:
        # pre-3.0 NiceGUI: file-like `content` and a separate `name`
        content = getattr(e, "content", None)
        name = getattr(e, "name", None) or "upload"
        read = getattr(content, "read", None)
        if callable(read):
            data = read()
            if hasattr(data, "__await__"):
                data = await data
            if isinstance(data, (bytes, bytearray)):
                return bytes(data), name
        raise RuntimeError("upload event carries no file")

    name = getattr(upload_file, "name", None) or "upload"

    p = _as_path(getattr(upload_file, "_path", None))
    if p is not None and p.exists():
        return p.read_bytes(), name

    read = getattr(upload_file, "read", None)
    if callable(read):
        data = read()
        if hasattr(data, "__await__"):
            data = await data
        if isinstance(data, (bytes, bytearray)):
            return bytes(data), name

    data2 = getattr(upload_file, "_data", None)
    if isinstance(data2, (bytes, bytearray)):
        return bytes(data2), name

    raise RuntimeError(f"upload has no readable data: {upload_summary(upload_file)}")
