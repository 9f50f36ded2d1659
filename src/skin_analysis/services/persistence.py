"""Persistence stage: analysis history per principal."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from skin_analysis.domain.errors import PersistenceFailed
from skin_analysis.domain.records import AnalysisRecord, AnalysisResult


class AnalysisRepository(Protocol):
    """Persistence interface for analysis records."""

    def save_analysis(self, record: AnalysisRecord) -> None:
        """Write a record under its owner and timestamp key."""

    def list_analyses(self, owner_id: str, limit: int) -> list[AnalysisRecord]:
        """Return the newest records first."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class PersistenceService:
    """Stores classification results as timestamped history."""

    repository: AnalysisRepository
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def persist(self, owner_id: str, result: AnalysisResult) -> AnalysisRecord:
        """Write the result and return the stored record."""
        record = AnalysisRecord(
            owner_id=owner_id, result=result, recorded_at=self.clock()
        )
        try:
            await asyncio.to_thread(self.repository.save_analysis, record)
        except Exception as exc:
            raise PersistenceFailed(f"Failed to save analysis {record.key}") from exc
        return record

    def list_analyses(self, owner_id: str, limit: int = 20) -> list[AnalysisRecord]:
        """Return the owner's analysis history, newest first."""
        return self.repository.list_analyses(owner_id, limit)
