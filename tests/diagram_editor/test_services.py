# matchwidgets/tests/diagram_editor/test_services.py

from __future__ import annotations

from pathlib import Path

import pytest

from matchwidgets.diagram_editor.services import (
    InMemoryPersistence,
    LocalImageUploader,
    UploadResult,
    build_test_payload,
    parse_test_payload,
    read_image_size,
)


def test_read_image_size(png_bytes: bytes) -> None:
    assert read_image_size(png_bytes) == (160, 120)


def test_read_image_size_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        read_image_size(b"definitely not an image")


def test_local_uploader_stores_and_measures(tmp_path: Path, png_bytes: bytes) -> None:
    uploader = LocalImageUploader(tmp_path / "uploads", url_prefix="/uploads/")

    result = uploader.upload(png_bytes, "Heart.PNG")

    assert result.success
    assert result.url.startswith("/uploads/")
    assert result.url.endswith(".png")
    assert (result.width, result.height) == (160, 120)
    assert uploader.path_for(result.url).read_bytes() == png_bytes

    info = uploader.image_info(result.url)
    assert (info.url, info.original_width, info.original_height) == (result.url, 160, 120)
    assert result.to_image_info() == info


def test_local_uploader_failure_is_a_result(tmp_path: Path) -> None:
    uploader = LocalImageUploader(tmp_path / "uploads")

    result = uploader.upload(b"garbage", "x.png")

    assert not result.success
    assert result.message
    assert not (tmp_path / "uploads").exists()
    with pytest.raises(ValueError):
        result.to_image_info()


def test_path_for_rejects_foreign_url(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        LocalImageUploader(tmp_path).path_for("https://example.com/a.png")


def test_upload_result_without_size_is_not_an_image() -> None:
    with pytest.raises(ValueError):
        UploadResult(success=True, url="/a.png").to_image_info()


def test_build_and_parse_payload() -> None:
    questions = [{"question_id": 1, "word": "eye"}, {"question_id": 2, "word": "ear"}]
    arrows = [{"associated_block_id": 1}]

    payload = build_test_payload("/uploads/a.png", questions, arrows, test_name="Face")

    assert payload["num_blocks"] == 2
    assert payload["test_name"] == "Face"
    assert payload["questions"] == questions
    assert payload["questions"][0] is not questions[0]

    url, qs, arr = parse_test_payload(payload)
    assert url == "/uploads/a.png"
    assert qs == questions
    assert arr == arrows

    assert "test_name" not in build_test_payload("/a.png", questions)
    assert parse_test_payload(build_test_payload("/a.png", questions))[2] is None


@pytest.mark.parametrize(
    "payload",
    [{}, {"image_url": ""}, {"image_url": "/a.png", "questions": "nope"}],
)
def test_parse_payload_rejects_malformed(payload) -> None:
    with pytest.raises(ValueError):
        parse_test_payload(payload)


def test_in_memory_persistence() -> None:
    store = InMemoryPersistence()

    assert not store.save({"questions": []}).success

    first = store.save(build_test_payload("/a.png", [{"question_id": 1}]))
    second = store.save(build_test_payload("/b.png", [{"question_id": 1}]))
    assert (first.test_id, second.test_id) == (1, 2)
    assert store.load(2)["image_url"] == "/b.png"
    with pytest.raises(KeyError):
        store.load(3)
