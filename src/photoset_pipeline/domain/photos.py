"""Domain models for photo sets and their photos."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from math import ceil
from uuid import UUID


class ApprovalStatus(StrEnum):
    """Approval lifecycle of a photo set."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PhotoType(StrEnum):
    """Role of a photo inside its set."""

    BEFORE = "BEFORE"
    AFTER = "AFTER"


class ActorRole(StrEnum):
    """Role of the authenticated caller."""

    WORKER = "WORKER"
    MAINTENANCE = "MAINTENANCE"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class AuthorizedActor:
    """Caller identity resolved before the pipeline runs."""

    id: str
    role: ActorRole


@dataclass(frozen=True)
class PhotoRecord:
    """Processed image stored in a photo set."""

    id: UUID
    photo_set_id: UUID
    url: str
    type: PhotoType
    uploaded_at: datetime
    filename: str | None
    size: int | None
    content_type: str | None


@dataclass(frozen=True)
class PhotoSetRecord:
    """A persisted submission with its photos."""

    id: UUID
    title: str | None
    description: str | None
    service_category: str
    status: ApprovalStatus
    submitted_at: datetime
    owner_id: str
    photos: list[PhotoRecord] = field(default_factory=list)
    updated_at: datetime | None = None

    def photos_of_type(self, photo_type: PhotoType) -> list[PhotoRecord]:
        """Return photos tagged with the given type."""
        return [photo for photo in self.photos if photo.type == photo_type]


@dataclass(frozen=True)
class UploadedPhoto:
    """A blob already in storage that is not yet persisted."""

    url: str
    type: PhotoType
    filename: str
    size: int
    content_type: str


@dataclass(frozen=True)
class NewPhotoSet:
    """Metadata used to create a photo set."""

    service_category: str
    owner_id: str
    title: str | None = None
    description: str | None = None
    status: ApprovalStatus = ApprovalStatus.PENDING


@dataclass(frozen=True)
class PhotoSetPage:
    """One page of photo sets."""

    items: list[PhotoSetRecord]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.page_size) if self.page_size else 0
