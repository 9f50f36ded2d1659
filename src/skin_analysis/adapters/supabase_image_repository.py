"""Supabase-backed image collection repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from skin_analysis.domain.records import ImageEntry
from skin_analysis.services.uploads import ImageRepository


@dataclass
class SupabaseImageRepository(ImageRepository):
    """Supabase implementation for uploaded image entries."""

    client: Client

    def add_image(self, owner_id: str, image_url: str, timestamp: datetime) -> None:
        """Insert an image entry row."""
        response = (
            self.client.table("images")
            .insert(
                {
                    "user_id": owner_id,
                    "image_url": image_url,
                    "timestamp": timestamp.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create image entry")

    def list_images(self, owner_id: str, limit: int) -> list[ImageEntry]:
        """Return the newest image entries for an owner."""
        response = (
            self.client.table("images")
            .select("image_url, timestamp")
            .eq("user_id", owner_id)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [
            ImageEntry(
                image_url=row["image_url"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
            )
            for row in response.data or []
        ]
