"""Error taxonomy for the photo pipeline."""

from dataclasses import dataclass
from uuid import UUID

from photoset_pipeline.domain.photos import ApprovalStatus, PhotoType


class PhotoPipelineError(Exception):
    """Base class for pipeline errors mapped to HTTP responses."""

    status_code = 500
    reason = "PipelineError"


class ValidationError(PhotoPipelineError):
    """Client-caused input error."""

    status_code = 400
    reason = "ValidationError"

    def __init__(
        self, message: str, *, field: str | None = None, filename: str | None = None
    ) -> None:
        super().__init__(message)
        self.field = field
        self.filename = filename

    def to_item(self) -> dict[str, object]:
        return {
            "field": self.field,
            "filename": self.filename,
            "reason": self.reason,
            "detail": str(self),
        }


class UnsupportedTypeError(ValidationError):
    reason = "UnsupportedType"


class FileTooLargeError(ValidationError):
    reason = "FileTooLarge"


class EmptyFileError(ValidationError):
    reason = "EmptyFile"


class MissingFieldError(ValidationError):
    reason = "MissingField"


class TooManyFilesError(ValidationError):
    reason = "TooManyFiles"


class InvalidStatusError(ValidationError):
    reason = "InvalidStatus"


class SubmissionValidationError(PhotoPipelineError):
    """One or more fields or files of a submission failed validation."""

    status_code = 400
    reason = "ValidationError"

    def __init__(self, errors: list[ValidationError]) -> None:
        super().__init__(f"Submission rejected: {len(errors)} validation error(s)")
        self.errors = errors


class TranscodeError(PhotoPipelineError):
    """An accepted file could not be decoded or re-encoded."""

    reason = "TranscodeError"

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


class UploadError(PhotoPipelineError):
    """Blob storage rejected or timed out on an upload."""

    reason = "UploadError"

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


class PersistenceError(PhotoPipelineError):
    """The repository failed to write."""

    reason = "PersistenceError"


class PhotoSetNotFoundError(PhotoPipelineError):
    status_code = 404
    reason = "NotFound"

    def __init__(self, photo_set_id: UUID) -> None:
        super().__init__(f"PhotoSet {photo_set_id} not found")
        self.photo_set_id = photo_set_id


class InvalidTransitionError(PhotoPipelineError):
    """Approval action attempted on a set that is no longer pending."""

    status_code = 409
    reason = "InvalidTransition"

    def __init__(
        self, photo_set_id: UUID, current: ApprovalStatus, requested: ApprovalStatus
    ) -> None:
        super().__init__(
            f"PhotoSet {photo_set_id} is {current}; cannot transition to {requested}"
        )
        self.photo_set_id = photo_set_id
        self.current = current
        self.requested = requested


class PermissionDeniedError(PhotoPipelineError):
    status_code = 403
    reason = "PermissionDenied"


@dataclass(frozen=True)
class FileFailure:
    """Why a single file of a submission failed."""

    filename: str
    type: PhotoType
    reason: str
    detail: str

    def to_item(self) -> dict[str, object]:
        return {
            "filename": self.filename,
            "type": str(self.type),
            "reason": self.reason,
            "detail": self.detail,
        }


class SubmissionFailedError(PhotoPipelineError):
    """Aggregate failure raised when any file of a submission failed."""

    reason = "SubmissionFailed"

    def __init__(
        self, failures: list[FileFailure], orphaned_urls: list[str] | None = None
    ) -> None:
        super().__init__("One or more images failed to process or upload.")
        self.failures = failures
        self.orphaned_urls = orphaned_urls or []
