"""Upload policy checks run before any decoding."""

from dataclasses import dataclass, field

from photoset_pipeline.domain.errors import (
    EmptyFileError,
    FileTooLargeError,
    UnsupportedTypeError,
)

DEFAULT_ALLOWED_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/webp", "image/gif"}
)
DEFAULT_MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class UploadPolicy:
    """Type and size limits for a single uploaded file."""

    allowed_types: frozenset[str] = field(default=DEFAULT_ALLOWED_TYPES)
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES


def validate_upload(
    filename: str,
    content_type: str | None,
    size: int,
    policy: UploadPolicy,
    field_name: str | None = None,
) -> None:
    """Raise a ValidationError subclass when the file breaks the policy.

    Only the declared media type and byte length are inspected, so hostile or
    oversized input is rejected before the decoder ever sees it.
    """
    media_type = normalize_content_type(content_type)
    if media_type not in policy.allowed_types:
        allowed = ", ".join(sorted(policy.allowed_types))
        raise UnsupportedTypeError(
            f"Invalid file type: {filename} ({media_type or 'unknown'}). "
            f"Allowed: {allowed}",
            field=field_name,
            filename=filename,
        )
    if size <= 0:
        raise EmptyFileError(
            f"File is empty: {filename}", field=field_name, filename=filename
        )
    if size > policy.max_file_size_bytes:
        limit_mb = policy.max_file_size_bytes / 1024 / 1024
        raise FileTooLargeError(
            f"File size exceeds {limit_mb:g}MB: {filename} "
            f"({size / 1024 / 1024:.2f}MB)",
            field=field_name,
            filename=filename,
        )


def normalize_content_type(content_type: str | None) -> str:
    """Lower-case a media type and drop parameters such as charset."""
    if not content_type:
        return ""
    return content_type.split(";", maxsplit=1)[0].strip().lower()
