"""Blob uploads with collision-free object names."""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import Protocol
from uuid import uuid4

from photoset_pipeline.domain.errors import UploadError

logger = logging.getLogger(__name__)

OBJECT_PREFIX = "photo-sets"
_MAX_BASE_LENGTH = 64
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStore(Protocol):
    """Interface for durable public blob storage."""

    async def put(self, name: str, data: bytes, content_type: str) -> str:
        """Store bytes under the name and return the public URL."""

    async def delete(self, urls: list[str]) -> None:
        """Delete previously stored blobs by public URL."""


@dataclass
class BlobUploader:
    """Uploads one transcoded image and returns its public URL."""

    store: BlobStore
    timeout_seconds: float | None = 30.0

    async def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        extension: str,
    ) -> str:
        """Upload bytes under a fresh unique name.

        Any transport failure or timeout is raised as UploadError. Nothing is
        retried here.
        """
        name = build_object_name(filename, extension)
        try:
            url = await asyncio.wait_for(
                self.store.put(name, data, content_type),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise UploadError(
                f"Upload timed out after {self.timeout_seconds}s: {filename}.",
                filename=filename,
            ) from exc
        except Exception as exc:
            logger.exception(
                "Blob upload failed",
                extra={"object_name": name, "image_filename": filename},
            )
            raise UploadError(
                f"Failed to upload image to cloud storage: {filename}.",
                filename=filename,
            ) from exc
        if not url:
            raise UploadError(
                f"Storage returned no URL for {filename}.", filename=filename
            )
        logger.info("Uploaded blob", extra={"object_name": name, "url": url})
        return url


def build_object_name(
    filename: str, extension: str, now: datetime | None = None
) -> str:
    """Build a unique object name from a timestamp and a sanitized base name."""
    moment = now or datetime.now(tz=UTC)
    millis = int(moment.timestamp() * 1000)
    base = sanitize_base_name(filename)
    return f"{OBJECT_PREFIX}/{millis}_{uuid4().hex[:8]}_{base}{extension}"


def sanitize_base_name(filename: str) -> str:
    """Drop the extension and any characters unsafe for object keys."""
    base = PurePosixPath(filename.replace("\\", "/")).name
    stem = base.rsplit(".", maxsplit=1)[0] if "." in base[1:] else base
    cleaned = _UNSAFE_CHARS.sub("-", stem).strip("-.")
    return cleaned[:_MAX_BASE_LENGTH] or "image"
