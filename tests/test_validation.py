"""Tests for upload policy checks."""

import pytest

from photoset_pipeline.domain.errors import (
    EmptyFileError,
    FileTooLargeError,
    UnsupportedTypeError,
)
from photoset_pipeline.services.validation import (
    DEFAULT_MAX_FILE_SIZE_BYTES,
    UploadPolicy,
    normalize_content_type,
    validate_upload,
)


@pytest.mark.parametrize(
    "content_type", ["image/jpeg", "image/png", "image/webp", "image/gif"]
)
def test_validate_upload_accepts_default_types(content_type: str) -> None:
    validate_upload("photo", content_type, 1024, UploadPolicy())


def test_validate_upload_accepts_file_exactly_at_limit() -> None:
    validate_upload(
        "photo.jpg", "image/jpeg", DEFAULT_MAX_FILE_SIZE_BYTES, UploadPolicy()
    )


def test_validate_upload_rejects_one_byte_over_limit() -> None:
    with pytest.raises(FileTooLargeError) as exc_info:
        validate_upload(
            "big.jpg",
            "image/jpeg",
            DEFAULT_MAX_FILE_SIZE_BYTES + 1,
            UploadPolicy(),
            field_name="beforeImages",
        )

    assert exc_info.value.reason == "FileTooLarge"
    assert exc_info.value.filename == "big.jpg"
    assert exc_info.value.field == "beforeImages"
    assert "10MB" in str(exc_info.value)


def test_validate_upload_rejects_unsupported_type() -> None:
    with pytest.raises(UnsupportedTypeError) as exc_info:
        validate_upload("photo.jpg", "application/pdf", 1024, UploadPolicy())

    item = exc_info.value.to_item()
    assert item["reason"] == "UnsupportedType"
    assert item["filename"] == "photo.jpg"


def test_validate_upload_type_is_checked_before_size() -> None:
    with pytest.raises(UnsupportedTypeError):
        validate_upload(
            "clip.mp4", "video/mp4", DEFAULT_MAX_FILE_SIZE_BYTES * 5, UploadPolicy()
        )


def test_validate_upload_rejects_missing_content_type() -> None:
    with pytest.raises(UnsupportedTypeError):
        validate_upload("photo.png", None, 1024, UploadPolicy())


def test_validate_upload_rejects_empty_file() -> None:
    with pytest.raises(EmptyFileError):
        validate_upload("empty.png", "image/png", 0, UploadPolicy())


def test_validate_upload_respects_custom_policy() -> None:
    policy = UploadPolicy(
        allowed_types=frozenset({"image/png"}), max_file_size_bytes=10
    )

    validate_upload("small.png", "image/png", 10, policy)
    with pytest.raises(UnsupportedTypeError):
        validate_upload("photo.jpg", "image/jpeg", 5, policy)
    with pytest.raises(FileTooLargeError):
        validate_upload("large.png", "image/png", 11, policy)


def test_normalize_content_type_drops_parameters() -> None:
    assert normalize_content_type("Image/JPEG; charset=binary") == "image/jpeg"
    assert normalize_content_type(None) == ""
