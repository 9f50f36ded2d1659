"""Supabase-backed analysis history repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from skin_analysis.domain.records import AnalysisRecord
from skin_analysis.services.persistence import AnalysisRepository


@dataclass
class SupabaseAnalysisRepository(AnalysisRepository):
    """Supabase implementation for skin analysis records."""

    client: Client

    def save_analysis(self, record: AnalysisRecord) -> None:
        """Insert an analysis row keyed by owner and timestamp."""
        response = (
            self.client.table("skin_analysis")
            .insert(
                {
                    "user_id": record.owner_id,
                    "recorded_key": record.key,
                    "result": record.result,
                    "timestamp": record.recorded_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save analysis")

    def list_analyses(self, owner_id: str, limit: int) -> list[AnalysisRecord]:
        """Return the newest analysis rows for an owner."""
        response = (
            self.client.table("skin_analysis")
            .select("user_id, result, timestamp")
            .eq("user_id", owner_id)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [
            AnalysisRecord(
                owner_id=row["user_id"],
                result=row["result"],
                recorded_at=datetime.fromisoformat(row["timestamp"]),
            )
            for row in response.data or []
        ]
