"""Submission orchestration: validate, transcode and upload, then persist."""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass, field, replace
from typing import Generic, TypeVar

from photoset_pipeline.domain.errors import (
    FileFailure,
    MissingFieldError,
    PermissionDeniedError,
    PersistenceError,
    SubmissionFailedError,
    SubmissionValidationError,
    TooManyFilesError,
    TranscodeError,
    UploadError,
    ValidationError,
)
from photoset_pipeline.domain.photos import (
    ActorRole,
    ApprovalStatus,
    AuthorizedActor,
    NewPhotoSet,
    PhotoSetRecord,
    PhotoType,
    UploadedPhoto,
)
from photoset_pipeline.services.photo_sets import PhotoSetRepository
from photoset_pipeline.services.transcoding import Transcoder
from photoset_pipeline.services.uploads import BlobUploader
from photoset_pipeline.services.validation import UploadPolicy, validate_upload

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FIELD_NAMES = {
    "service_category": "serviceCategory",
    "title": "title",
    "description": "description",
    "owner_id": "ownerId",
}
_GROUP_FIELDS = {PhotoType.BEFORE: "beforeImages", PhotoType.AFTER: "afterImages"}


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    error: BaseException


Settled = Succeeded[T] | Failed


async def join_all(aws: Iterable[Awaitable[T]]) -> list[Settled[T]]:
    """Wait for every awaitable and return one result per item, in order.

    Failures never cancel siblings.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    settled: list[Settled[T]] = []
    for result in results:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            settled.append(Failed(result))
        else:
            settled.append(Succeeded(result))
    return settled


@dataclass(frozen=True)
class IncomingFile:
    """Raw uploaded file as received from the client."""

    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SubmissionRequest:
    """Metadata and file groups of one submission."""

    service_category: str | None
    before_files: list[IncomingFile] = field(default_factory=list)
    after_files: list[IncomingFile] = field(default_factory=list)
    title: str | None = None
    description: str | None = None
    owner_id: str | None = None


@dataclass(frozen=True)
class SubmissionPolicy:
    """Per-portal rules for a submission endpoint."""

    name: str
    initial_status: ApprovalStatus = ApprovalStatus.PENDING
    required_fields: frozenset[str] = frozenset({"service_category"})
    max_files: int = 10
    require_both_groups: bool = True
    allowed_roles: frozenset[ActorRole] = frozenset(ActorRole)


WORKER_PAIR_SUBMISSION = SubmissionPolicy(name="worker-pair", max_files=2)
MAINTENANCE_SUBMISSION = SubmissionPolicy(
    name="maintenance",
    allowed_roles=frozenset({ActorRole.MAINTENANCE, ActorRole.ADMIN}),
)
ADMIN_DIRECT_SUBMISSION = SubmissionPolicy(
    name="admin-direct",
    initial_status=ApprovalStatus.APPROVED,
    required_fields=frozenset({"service_category", "title"}),
    allowed_roles=frozenset({ActorRole.ADMIN}),
)


def with_max_files(policy: SubmissionPolicy, max_files: int) -> SubmissionPolicy:
    """Return a copy of the policy with a different file limit."""
    return replace(policy, max_files=max_files)


@dataclass
class SubmissionService:
    """Turns a multi-file submission into a persisted photo set or one error."""

    uploader: BlobUploader
    transcoder: Transcoder
    repository: PhotoSetRepository
    upload_policy: UploadPolicy = field(default_factory=UploadPolicy)

    async def submit(
        self,
        actor: AuthorizedActor,
        request: SubmissionRequest,
        policy: SubmissionPolicy,
    ) -> PhotoSetRecord:
        """Process every file concurrently and create the set if all succeed.

        Raises SubmissionValidationError before any decoding when fields or
        files break the policy, SubmissionFailedError when any file fails to
        transcode or upload, and PersistenceError when the final write fails.
        Blobs uploaded before a failure are left in storage.
        """
        if actor.role not in policy.allowed_roles:
            raise PermissionDeniedError(
                f"Role {actor.role} may not use the {policy.name} submission"
            )
        files = _tagged_files(request)
        errors = self._check_request(request, files, policy)
        if errors:
            logger.info(
                "Submission rejected by validation",
                extra={"policy": policy.name, "errors": [e.to_item() for e in errors]},
            )
            raise SubmissionValidationError(errors)

        logger.info(
            "Processing submission",
            extra={
                "policy": policy.name,
                "actor_id": actor.id,
                "before_count": len(request.before_files),
                "after_count": len(request.after_files),
            },
        )
        outcomes = await join_all(
            self._process_file(incoming, photo_type) for photo_type, incoming in files
        )

        uploaded: list[UploadedPhoto] = []
        failures: list[FileFailure] = []
        for (photo_type, incoming), outcome in zip(files, outcomes, strict=True):
            if isinstance(outcome, Succeeded):
                uploaded.append(outcome.value)
            else:
                failures.append(_to_failure(incoming, photo_type, outcome.error))

        if failures:
            orphaned = [photo.url for photo in uploaded]
            logger.warning(
                "Submission failed; no photo set created",
                extra={
                    "policy": policy.name,
                    "failures": [failure.to_item() for failure in failures],
                    "orphaned_urls": orphaned,
                },
            )
            raise SubmissionFailedError(failures, orphaned_urls=orphaned)

        new_photo_set = NewPhotoSet(
            service_category=(request.service_category or "").strip(),
            owner_id=request.owner_id or actor.id,
            title=_clean(request.title),
            description=_clean(request.description),
            status=policy.initial_status,
        )
        try:
            photo_set = self.repository.create(new_photo_set, uploaded)
        except Exception as exc:
            orphaned = [photo.url for photo in uploaded]
            logger.error(
                "Persisting photo set failed after upload; blobs are orphaned",
                exc_info=True,
                extra={"policy": policy.name, "orphaned_urls": orphaned},
            )
            if isinstance(exc, PersistenceError):
                raise
            raise PersistenceError(
                "Could not save photo set and photo metadata to database."
            ) from exc
        logger.info(
            "PhotoSet created",
            extra={
                "photo_set_id": str(photo_set.id),
                "status": str(photo_set.status),
                "photo_count": len(photo_set.photos),
            },
        )
        return photo_set

    def _check_request(
        self,
        request: SubmissionRequest,
        files: list[tuple[PhotoType, IncomingFile]],
        policy: SubmissionPolicy,
    ) -> list[ValidationError]:
        errors: list[ValidationError] = []
        for name in sorted(policy.required_fields):
            value = getattr(request, name, None)
            if not isinstance(value, str) or not value.strip():
                field_name = _FIELD_NAMES.get(name, name)
                errors.append(
                    MissingFieldError(
                        f"Missing required field: {field_name}", field=field_name
                    )
                )

        groups = {
            PhotoType.BEFORE: request.before_files,
            PhotoType.AFTER: request.after_files,
        }
        if policy.require_both_groups:
            for photo_type, group in groups.items():
                if not group:
                    field_name = _GROUP_FIELDS[photo_type]
                    errors.append(
                        MissingFieldError(
                            f"At least one {photo_type.lower()} image is required",
                            field=field_name,
                        )
                    )
        elif not files:
            errors.append(
                MissingFieldError("At least one image is required", field="images")
            )
        if len(files) > policy.max_files:
            errors.append(
                TooManyFilesError(
                    f"Too many images: {len(files)} (max {policy.max_files})",
                    field="images",
                )
            )

        for photo_type, incoming in files:
            try:
                validate_upload(
                    incoming.filename,
                    incoming.content_type,
                    incoming.size,
                    self.upload_policy,
                    field_name=_GROUP_FIELDS[photo_type],
                )
            except ValidationError as exc:
                errors.append(exc)
        return errors

    async def _process_file(
        self, incoming: IncomingFile, photo_type: PhotoType
    ) -> UploadedPhoto:
        image = await asyncio.to_thread(
            self.transcoder.transcode, incoming.data, incoming.filename
        )
        url = await self.uploader.upload(
            incoming.filename,
            image.data,
            image.content_type,
            self.transcoder.extension,
        )
        return UploadedPhoto(
            url=url,
            type=photo_type,
            filename=incoming.filename,
            size=image.size,
            content_type=image.content_type,
        )


def _tagged_files(request: SubmissionRequest) -> list[tuple[PhotoType, IncomingFile]]:
    return [(PhotoType.BEFORE, f) for f in request.before_files] + [
        (PhotoType.AFTER, f) for f in request.after_files
    ]


def _to_failure(
    incoming: IncomingFile, photo_type: PhotoType, error: BaseException
) -> FileFailure:
    if isinstance(error, TranscodeError | UploadError):
        return FileFailure(
            filename=incoming.filename,
            type=photo_type,
            reason=error.reason,
            detail=str(error),
        )
    logger.error(
        "Unexpected error while processing image",
        exc_info=error,
        extra={"image_filename": incoming.filename},
    )
    return FileFailure(
        filename=incoming.filename,
        type=photo_type,
        reason="UnexpectedError",
        detail=f"An unknown error occurred while processing {incoming.filename}.",
    )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
