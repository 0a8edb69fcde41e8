"""Tests for blob uploads and object naming."""

import asyncio
import re
from dataclasses import dataclass
from datetime import UTC, datetime

import pytest

from photoset_pipeline.domain.errors import UploadError
from photoset_pipeline.services.uploads import (
    BlobUploader,
    build_object_name,
    sanitize_base_name,
)
from tests.conftest import BLOB_BASE_URL, FakeBlobStore


@dataclass
class EmptyUrlBlobStore(FakeBlobStore):
    async def put(self, name: str, data: bytes, content_type: str) -> str:
        return ""


def test_build_object_name_uses_timestamp_and_sanitized_base() -> None:
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)

    name = build_object_name("My Photo (1).JPG", ".webp", now=moment)

    millis = int(moment.timestamp() * 1000)
    assert re.fullmatch(rf"photo-sets/{millis}_[0-9a-f]{{8}}_My-Photo-1\.webp", name)


def test_build_object_name_is_unique_for_same_input() -> None:
    moment = datetime(2024, 1, 2, tzinfo=UTC)

    names = {build_object_name("photo.jpg", ".webp", now=moment) for _ in range(50)}

    assert len(names) == 50


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("before.jpeg", "before"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\shot.png", "shot"),
        (".hidden", "hidden"),
        ("???.png", "image"),
        ("", "image"),
    ],
)
def test_sanitize_base_name(filename: str, expected: str) -> None:
    assert sanitize_base_name(filename) == expected


def test_sanitize_base_name_truncates_long_names() -> None:
    assert len(sanitize_base_name("a" * 300 + ".png")) == 64


def test_uploader_returns_public_url() -> None:
    store = FakeBlobStore()
    uploader = BlobUploader(store=store)

    url = asyncio.run(uploader.upload("after.jpg", b"data", "image/webp", ".webp"))

    assert url.startswith(BLOB_BASE_URL)
    assert url.endswith("_after.webp")
    [(data, content_type)] = store.objects.values()
    assert data == b"data"
    assert content_type == "image/webp"


def test_uploader_wraps_storage_errors() -> None:
    store = FakeBlobStore(failing_names={"broken"})
    uploader = BlobUploader(store=store)

    with pytest.raises(UploadError) as exc_info:
        asyncio.run(uploader.upload("broken.jpg", b"data", "image/webp", ".webp"))

    assert exc_info.value.filename == "broken.jpg"
    assert str(exc_info.value) == (
        "Failed to upload image to cloud storage: broken.jpg."
    )


def test_uploader_times_out() -> None:
    store = FakeBlobStore(delay_seconds=1.0)
    uploader = BlobUploader(store=store, timeout_seconds=0.01)

    with pytest.raises(UploadError, match="timed out"):
        asyncio.run(uploader.upload("slow.jpg", b"data", "image/webp", ".webp"))

    assert store.objects == {}


def test_uploader_rejects_empty_url() -> None:
    uploader = BlobUploader(store=EmptyUrlBlobStore())

    with pytest.raises(UploadError, match="no URL"):
        asyncio.run(uploader.upload("photo.jpg", b"data", "image/webp", ".webp"))
