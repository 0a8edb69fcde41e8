"""Photo set persistence interface and the approval state machine."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from photoset_pipeline.domain.errors import (
    InvalidStatusError,
    InvalidTransitionError,
    MissingFieldError,
    PermissionDeniedError,
    PhotoSetNotFoundError,
    ValidationError,
)
from photoset_pipeline.domain.photos import (
    ActorRole,
    ApprovalStatus,
    AuthorizedActor,
    NewPhotoSet,
    PhotoSetPage,
    PhotoSetRecord,
    UploadedPhoto,
)
from photoset_pipeline.services.uploads import BlobStore

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED})
MAX_PAGE_SIZE = 100
SORT_COLUMNS = {"submittedAt": "submitted_at", "serviceCategory": "service_category"}


class Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = Unset()


@dataclass(frozen=True)
class PhotoSetSort:
    """Listing order over an allow-listed column."""

    column: str = "submitted_at"
    descending: bool = True


NEWEST_FIRST = PhotoSetSort()


class PhotoSetRepository(Protocol):
    """Persistence interface for photo set aggregates."""

    def create(
        self, photo_set: NewPhotoSet, photos: list[UploadedPhoto]
    ) -> PhotoSetRecord:
        """Create the set and all of its photos in one atomic write."""

    def find_by_id(self, photo_set_id: UUID) -> PhotoSetRecord | None:
        """Return the set with its photos, if present."""

    def list_by_status(
        self,
        status: ApprovalStatus | None,
        page: int,
        page_size: int,
        *,
        service_category: str | None = None,
        owner_id: str | None = None,
        search_term: str | None = None,
        sort: PhotoSetSort = NEWEST_FIRST,
    ) -> tuple[list[PhotoSetRecord], int]:
        """Return one page of matching sets in sort order and the total count.

        search_term matches title or description, case-insensitively.
        """

    def transition_status(
        self,
        photo_set_id: UUID,
        expected: ApprovalStatus,
        new_status: ApprovalStatus,
    ) -> PhotoSetRecord | None:
        """Set the status only if it currently equals expected."""

    def update_metadata(
        self,
        photo_set_id: UUID,
        title: str | None | Unset = UNSET,
        description: str | None | Unset = UNSET,
    ) -> PhotoSetRecord | None:
        """Update title and/or description, leaving status and photos alone."""

    def count_by_status(self, status: ApprovalStatus) -> int:
        """Return how many sets have the status."""

    def delete(self, photo_set_id: UUID) -> bool:
        """Delete a set and, by cascade, its photos."""


@dataclass
class PhotoSetService:
    """Queries, edits and the PENDING -> APPROVED | REJECTED state machine."""

    repository: PhotoSetRepository
    blob_store: BlobStore

    def get(self, photo_set_id: UUID) -> PhotoSetRecord:
        photo_set = self.repository.find_by_id(photo_set_id)
        if photo_set is None:
            raise PhotoSetNotFoundError(photo_set_id)
        return photo_set

    def list_sets(
        self,
        status: ApprovalStatus | None = None,
        page: int = 1,
        page_size: int = 10,
        *,
        service_category: str | None = None,
        owner_id: str | None = None,
        search_term: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> PhotoSetPage:
        """Return a page of sets, newest-submitted-first unless sorted otherwise."""
        page, page_size = _clamp_paging(page, page_size)
        items, total = self.repository.list_by_status(
            status,
            page,
            page_size,
            service_category=service_category,
            owner_id=owner_id,
            search_term=(search_term or "").strip() or None,
            sort=parse_sort(sort_by, sort_order),
        )
        return PhotoSetPage(items=items, total=total, page=page, page_size=page_size)

    def list_public(
        self, page: int = 1, page_size: int = 12, service_category: str | None = None
    ) -> PhotoSetPage:
        """Return approved sets, the only ones visible to the public."""
        return self.list_sets(
            ApprovalStatus.APPROVED,
            page,
            page_size,
            service_category=service_category,
        )

    def pending_count(self) -> int:
        """Return the number of sets waiting for review."""
        return self.repository.count_by_status(ApprovalStatus.PENDING)

    def approve(self, actor: AuthorizedActor, photo_set_id: UUID) -> PhotoSetRecord:
        return self.transition(actor, photo_set_id, ApprovalStatus.APPROVED)

    def reject(self, actor: AuthorizedActor, photo_set_id: UUID) -> PhotoSetRecord:
        return self.transition(actor, photo_set_id, ApprovalStatus.REJECTED)

    def transition(
        self,
        actor: AuthorizedActor,
        photo_set_id: UUID,
        new_status: ApprovalStatus | str,
    ) -> PhotoSetRecord:
        """Move a pending set to a terminal status.

        Terminal sets are never reopened or overwritten; resubmission creates
        a new set.
        """
        if actor.role != ActorRole.ADMIN:
            raise PermissionDeniedError("Only reviewers can change approval status")
        target = _parse_target_status(new_status)
        updated = self.repository.transition_status(
            photo_set_id, ApprovalStatus.PENDING, target
        )
        if updated is not None:
            logger.info(
                "PhotoSet status changed",
                extra={
                    "photo_set_id": str(photo_set_id),
                    "status": str(target),
                    "actor_id": actor.id,
                },
            )
            return updated
        current = self.repository.find_by_id(photo_set_id)
        if current is None:
            raise PhotoSetNotFoundError(photo_set_id)
        raise InvalidTransitionError(photo_set_id, current.status, target)

    def update_details(
        self,
        actor: AuthorizedActor,
        photo_set_id: UUID,
        title: str | None | Unset = UNSET,
        description: str | None | Unset = UNSET,
    ) -> PhotoSetRecord:
        """Edit title and/or description of a set.

        Administrators may edit any set; other actors only their own.
        """
        if title is UNSET and description is UNSET:
            raise ValidationError("No update data provided")
        if title is not UNSET and (title is None or not title.strip()):
            raise MissingFieldError("Title cannot be empty", field="title")
        current = self.get(photo_set_id)
        if actor.role != ActorRole.ADMIN and actor.id != current.owner_id:
            raise PermissionDeniedError("Only the owner or an administrator can edit")
        updated = self.repository.update_metadata(
            photo_set_id, title=title, description=description
        )
        if updated is None:
            raise PhotoSetNotFoundError(photo_set_id)
        return updated

    async def delete(self, actor: AuthorizedActor, photo_set_id: UUID) -> None:
        """Delete a set, its photos and, best-effort, their blobs."""
        if actor.role != ActorRole.ADMIN:
            raise PermissionDeniedError("Only administrators can delete photo sets")
        photo_set = self.get(photo_set_id)
        urls = [photo.url for photo in photo_set.photos]
        if urls:
            try:
                await self.blob_store.delete(urls)
            except Exception:
                logger.exception(
                    "Failed to delete blobs for photo set",
                    extra={"photo_set_id": str(photo_set_id), "orphaned_urls": urls},
                )
        if not self.repository.delete(photo_set_id):
            raise PhotoSetNotFoundError(photo_set_id)
        logger.info(
            "PhotoSet deleted",
            extra={"photo_set_id": str(photo_set_id), "actor_id": actor.id},
        )


def _parse_target_status(value: ApprovalStatus | str) -> ApprovalStatus:
    try:
        status = ApprovalStatus(value)
    except ValueError as exc:
        raise InvalidStatusError(
            f"Invalid approval status: {value}", field="status"
        ) from exc
    if status not in TERMINAL_STATUSES:
        raise InvalidStatusError(
            f"Status must be one of {', '.join(sorted(TERMINAL_STATUSES))}",
            field="status",
        )
    return status


def parse_sort(sort_by: str | None, sort_order: str | None) -> PhotoSetSort:
    """Map API sort parameters to a column; anything unknown keeps newest-first."""
    column = SORT_COLUMNS.get(sort_by or "")
    order = (sort_order or "").lower()
    if column is None or order not in {"asc", "desc"}:
        return NEWEST_FIRST
    return PhotoSetSort(column=column, descending=order == "desc")


def _clamp_paging(page: int, page_size: int) -> tuple[int, int]:
    return max(page, 1), min(max(page_size, 1), MAX_PAGE_SIZE)
