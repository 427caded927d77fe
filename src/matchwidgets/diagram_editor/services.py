"""Interfaces to the collaborators the editor talks to.

- Upload: takes raw image bytes, returns where the image lives and its natural
  size. ``LocalImageUploader`` is a filesystem implementation for demos and
  tests; production deployments plug in their own storage.
- Persistence: takes the save payload built by ``build_test_payload`` and
  returns the stored test id.
"""

from __future__ import annotations

import io
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from matchwidgets.utils.logging import get_logger

from .model import ImageInfo

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadResult:
    success: bool
    url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    message: str = ""

    def to_image_info(self) -> ImageInfo:
        """ImageInfo for a successful upload."""
        if not self.success or self.url is None or not self.width or not self.height:
            raise ValueError(f"upload did not produce an image: {self.message!r}")
        return ImageInfo(url=self.url, original_width=self.width, original_height=self.height)


@dataclass(frozen=True)
class SaveResult:
    success: bool
    test_id: Optional[Any] = None
    error: str = ""


class ImageUploader(Protocol):
    def upload(self, data: bytes, filename: str) -> UploadResult: ...


class ExercisePersistence(Protocol):
    def save(self, payload: Dict[str, Any]) -> SaveResult: ...


def read_image_size(data: bytes) -> Tuple[int, int]:
    """Natural (width, height) of an encoded image.

    Raises:
        ValueError: if the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return int(img.width), int(img.height)
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"not a readable image: {e}") from e


class LocalImageUploader:
    """Stores uploads in a directory and serves them under `url_prefix`."""

    def __init__(self, directory: str | Path, url_prefix: str = "/uploads") -> None:
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, data: bytes, filename: str) -> UploadResult:
        try:
            width, height = read_image_size(data)
        except ValueError as e:
            logger.warning(f"upload rejected for {filename!r}: {e}")
            return UploadResult(success=False, message=str(e))

        suffix = Path(filename).suffix.lower() or ".png"
        name = f"{uuid.uuid4().hex}{suffix}"
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / name).write_bytes(data)

        url = f"{self.url_prefix}/{name}"
        logger.info(f"stored upload {filename!r} as {url} ({width}x{height})")
        return UploadResult(success=True, url=url, width=width, height=height)

    def path_for(self, url: str) -> Path:
        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            raise ValueError(f"{url!r} was not stored by this uploader")
        return self.directory / url[len(prefix):]

    def image_info(self, url: str) -> ImageInfo:
        """ImageInfo for a previously stored upload, measured from disk."""
        width, height = read_image_size(self.path_for(url).read_bytes())
        return ImageInfo(url=url, original_width=width, original_height=height)


class InMemoryPersistence:
    """Keeps saved payloads in a dict keyed by an increasing test id."""

    def __init__(self) -> None:
        self.tests: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

    def save(self, payload: Dict[str, Any]) -> SaveResult:
        if not payload.get("questions"):
            return SaveResult(success=False, error="an exercise needs at least one block")
        test_id = self._next_id
        self._next_id += 1
        self.tests[test_id] = dict(payload)
        logger.info(f"stored test {test_id} ({payload.get('num_blocks', 0)} blocks)")
        return SaveResult(success=True, test_id=test_id)

    def load(self, test_id: int) -> Dict[str, Any]:
        try:
            return self.tests[test_id]
        except KeyError:
            raise KeyError(f"no test with id {test_id}") from None


def build_test_payload(
    image_url: str,
    questions: Sequence[Mapping[str, Any]],
    arrows: Sequence[Mapping[str, Any]] = (),
    *,
    test_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Body sent to the persistence collaborator."""
    payload: Dict[str, Any] = {
        "image_url": image_url,
        "num_blocks": len(questions),
        "questions": [dict(q) for q in questions],
        "arrows": [dict(a) for a in arrows],
    }
    if test_name:
        payload["test_name"] = test_name
    return payload


def parse_test_payload(payload: Mapping[str, Any]) -> Tuple[str, List[Mapping[str, Any]], Optional[List[Mapping[str, Any]]]]:
    """(image_url, questions, arrows or None) from a stored payload."""
    image_url = payload.get("image_url")
    if not isinstance(image_url, str) or not image_url:
        raise ValueError("payload has no image_url")
    questions = payload.get("questions") or []
    if not isinstance(questions, list):
        raise ValueError("payload questions must be a list")
    arrows = payload.get("arrows")
    if arrows is not None and not isinstance(arrows, list):
        arrows = None
    return image_url, questions, arrows or None
