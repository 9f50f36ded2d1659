"""Supabase Storage-backed object storage."""

from dataclasses import dataclass

from supabase import Client

from skin_analysis.services.uploads import ObjectStorage


@dataclass
class SupabaseObjectStorage(ObjectStorage):
    """Stores image blobs in a Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Upload a blob to the bucket."""
        self.client.storage.from_(self.bucket).upload(
            path=path,
            file=data,
            file_options={"content-type": content_type},
        )

    def get_download_url(self, path: str) -> str:
        """Return the public URL of a stored blob."""
        url = self.client.storage.from_(self.bucket).get_public_url(path)
        if not url:
            raise RuntimeError(f"No public URL for {path}")
        return url
