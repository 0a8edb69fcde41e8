"""Supabase-backed photo set repository."""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from photoset_pipeline.domain.errors import PersistenceError
from photoset_pipeline.domain.photos import (
    ApprovalStatus,
    NewPhotoSet,
    PhotoRecord,
    PhotoSetRecord,
    PhotoType,
    UploadedPhoto,
)
from photoset_pipeline.services.photo_sets import (
    NEWEST_FIRST,
    UNSET,
    PhotoSetRepository,
    PhotoSetSort,
    Unset,
)

logger = logging.getLogger(__name__)

_PHOTO_SET_COLUMNS = (
    "id, title, description, service_category, status, submitted_at, owner_id, "
    "updated_at, photos(id, photo_set_id, url, type, uploaded_at, filename, size, "
    "content_type)"
)
# Characters with meaning inside a PostgREST or= filter.
_FILTER_RESERVED = re.compile(r"[,()*%\"\\]")


@dataclass
class SupabasePhotoSetRepository(PhotoSetRepository):
    """Supabase implementation for photo set aggregates."""

    client: Client

    def create(
        self, photo_set: NewPhotoSet, photos: list[UploadedPhoto]
    ) -> PhotoSetRecord:
        """Insert the set and its photos through one transactional function."""
        if any(not photo.url for photo in photos):
            raise PersistenceError("Photo url must not be empty")
        if not photos:
            logger.warning(
                "Creating photo set without photos",
                extra={"owner_id": photo_set.owner_id},
            )
        response = self.client.rpc(
            "create_photo_set",
            {
                "payload": {
                    "title": photo_set.title,
                    "description": photo_set.description,
                    "service_category": photo_set.service_category,
                    "status": str(photo_set.status),
                    "owner_id": photo_set.owner_id,
                    "photos": [
                        {
                            "url": photo.url,
                            "type": str(photo.type),
                            "filename": photo.filename,
                            "size": photo.size,
                            "content_type": photo.content_type,
                        }
                        for photo in photos
                    ],
                }
            },
        ).execute()
        data = response.data
        row = (data or [None])[0] if isinstance(data, list) else data
        if not row:
            raise PersistenceError("Failed to create photo set")
        return _to_photo_set(row)

    def find_by_id(self, photo_set_id: UUID) -> PhotoSetRecord | None:
        """Return a photo set with its photos, if present."""
        response = (
            self.client.table("photo_sets")
            .select(_PHOTO_SET_COLUMNS)
            .eq("id", str(photo_set_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_photo_set(response.data[0])

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
        """Return one page of photo sets in sort order, with the total count."""
        start = (page - 1) * page_size
        query = self.client.table("photo_sets").select(
            _PHOTO_SET_COLUMNS, count="exact"
        )
        if status is not None:
            query = query.eq("status", str(status))
        if service_category:
            query = query.eq("service_category", service_category)
        if owner_id:
            query = query.eq("owner_id", owner_id)
        term = _FILTER_RESERVED.sub("", search_term or "").strip()
        if term:
            query = query.or_(f"title.ilike.*{term}*,description.ilike.*{term}*")
        query = query.order(sort.column, desc=sort.descending)
        if sort.column != NEWEST_FIRST.column:
            query = query.order(NEWEST_FIRST.column, desc=True)
        response = query.range(start, start + page_size - 1).execute()
        items = [_to_photo_set(row) for row in response.data or []]
        total = response.count if response.count is not None else len(items)
        return items, total

    def transition_status(
        self,
        photo_set_id: UUID,
        expected: ApprovalStatus,
        new_status: ApprovalStatus,
    ) -> PhotoSetRecord | None:
        """Compare-and-set the status; return None when nothing matched."""
        response = (
            self.client.table("photo_sets")
            .update(
                {
                    "status": str(new_status),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(photo_set_id))
            .eq("status", str(expected))
            .execute()
        )
        if not response.data:
            return None
        return self.find_by_id(photo_set_id)

    def update_metadata(
        self,
        photo_set_id: UUID,
        title: str | None | Unset = UNSET,
        description: str | None | Unset = UNSET,
    ) -> PhotoSetRecord | None:
        """Update title and/or description of a photo set."""
        payload: dict[str, object] = {"updated_at": datetime.now(tz=UTC).isoformat()}
        if title is not UNSET:
            payload["title"] = title
        if description is not UNSET:
            payload["description"] = description
        response = (
            self.client.table("photo_sets")
            .update(payload)
            .eq("id", str(photo_set_id))
            .execute()
        )
        if not response.data:
            return None
        return self.find_by_id(photo_set_id)

    def count_by_status(self, status: ApprovalStatus) -> int:
        """Return the number of photo sets with a status."""
        response = (
            self.client.table("photo_sets")
            .select("id", count="exact", head=True)
            .eq("status", str(status))
            .execute()
        )
        return response.count or 0

    def delete(self, photo_set_id: UUID) -> bool:
        """Delete a photo set; photo rows cascade."""
        response = (
            self.client.table("photo_sets")
            .delete()
            .eq("id", str(photo_set_id))
            .execute()
        )
        return bool(response.data)


def _to_photo_set(row: dict[str, object]) -> PhotoSetRecord:
    photos = [_to_photo(photo) for photo in row.get("photos") or []]
    photos.sort(key=lambda photo: (photo.type != PhotoType.BEFORE, photo.uploaded_at))
    updated_at = row.get("updated_at")
    return PhotoSetRecord(
        id=UUID(str(row["id"])),
        title=row.get("title"),
        description=row.get("description"),
        service_category=str(row["service_category"]),
        status=ApprovalStatus(row["status"]),
        submitted_at=_parse_timestamp(row["submitted_at"]),
        owner_id=str(row["owner_id"]),
        photos=photos,
        updated_at=_parse_timestamp(updated_at) if updated_at else None,
    )


def _to_photo(row: dict[str, object]) -> PhotoRecord:
    size = row.get("size")
    return PhotoRecord(
        id=UUID(str(row["id"])),
        photo_set_id=UUID(str(row["photo_set_id"])),
        url=str(row["url"]),
        type=PhotoType(row["type"]),
        uploaded_at=_parse_timestamp(row["uploaded_at"]),
        filename=row.get("filename"),
        size=int(size) if size is not None else None,
        content_type=row.get("content_type"),
    )


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
