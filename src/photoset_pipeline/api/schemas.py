"""Request and response models for the photo set API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from photoset_pipeline.domain.photos import (
    ApprovalStatus,
    PhotoRecord,
    PhotoSetPage,
    PhotoSetRecord,
    PhotoType,
)


class ApiModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PhotoResponse(ApiModel):
    id: UUID
    photo_set_id: UUID
    url: str
    type: PhotoType
    uploaded_at: datetime
    filename: str | None = None
    size: int | None = None
    content_type: str | None = None


class PhotoSetResponse(ApiModel):
    id: UUID
    title: str | None = None
    description: str | None = None
    service_category: str
    status: ApprovalStatus
    submitted_at: datetime
    owner_id: str
    updated_at: datetime | None = None
    photos: list[PhotoResponse] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: PhotoSetRecord) -> "PhotoSetResponse":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            service_category=record.service_category,
            status=record.status,
            submitted_at=record.submitted_at,
            owner_id=record.owner_id,
            updated_at=record.updated_at,
            photos=[_photo_response(photo) for photo in record.photos],
        )


class Pagination(ApiModel):
    page: int
    page_size: int
    total_pages: int
    total_results: int


class PhotoSetListResponse(ApiModel):
    data: list[PhotoSetResponse]
    pagination: Pagination

    @classmethod
    def from_page(cls, page: PhotoSetPage) -> "PhotoSetListResponse":
        return cls(
            data=[PhotoSetResponse.from_record(item) for item in page.items],
            pagination=Pagination(
                page=page.page,
                page_size=page.page_size,
                total_pages=page.total_pages,
                total_results=page.total,
            ),
        )


class PendingCountResponse(ApiModel):
    count: int


class StatusUpdateRequest(ApiModel):
    status: str


class DetailsUpdateRequest(ApiModel):
    title: str | None = None
    description: str | None = None


def _photo_response(photo: PhotoRecord) -> PhotoResponse:
    return PhotoResponse(
        id=photo.id,
        photo_set_id=photo.photo_set_id,
        url=photo.url,
        type=photo.type,
        uploaded_at=photo.uploaded_at,
        filename=photo.filename,
        size=photo.size,
        content_type=photo.content_type,
    )
