"""Supabase Storage blob store."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from photoset_pipeline.services.uploads import BlobStore


@dataclass
class SupabaseBlobStore(BlobStore):
    """Public Supabase Storage bucket used as durable blob storage."""

    client: Client
    bucket: str

    async def put(self, name: str, data: bytes, content_type: str) -> str:
        """Upload bytes and return the public URL."""
        return await asyncio.to_thread(self._put_sync, name, data, content_type)

    async def delete(self, urls: list[str]) -> None:
        """Remove objects identified by their public URLs."""
        paths = [path for path in (self.object_path(url) for url in urls) if path]
        if paths:
            bucket = self.client.storage.from_(self.bucket)
            await asyncio.to_thread(bucket.remove, paths)

    def object_path(self, url: str) -> str | None:
        """Return the object path inside the bucket for a public URL."""
        marker = f"/object/public/{self.bucket}/"
        _, found, path = url.split("?", maxsplit=1)[0].partition(marker)
        return path if found and path else None

    def _put_sync(self, name: str, data: bytes, content_type: str) -> str:
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path=name,
            file=data,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        return bucket.get_public_url(name).rstrip("?")
