"""Archive store for completed audit reports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional
from uuid import uuid4

from core import ArchiveCategory, ArchiveRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_archive_id() -> str:
    return f"an_{_utcnow().strftime('%Y%m%d_%H%M%S')}_{uuid4().hex[:8]}"


class ArchiveStore(ABC):
    @abstractmethod
    async def count_by_category(self, user_id: str, category: ArchiveCategory) -> int:
        pass

    @abstractmethod
    async def save(
        self,
        user_id: str,
        category: ArchiveCategory,
        title: str,
        report: Dict[str, Any],
        source_url: Optional[str] = None,
    ) -> str:
        pass

    @abstractmethod
    async def get_by_id(self, archive_id: str) -> Optional[ArchiveRecord]:
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        category: Optional[ArchiveCategory] = None,
        limit: int = 50,
    ) -> List[ArchiveRecord]:
        pass


class InMemoryArchiveStore(ArchiveStore):
    """Thread-safe in-memory archive."""

    def __init__(self) -> None:
        self._records: Dict[str, ArchiveRecord] = {}
        self._lock = Lock()

    async def count_by_category(self, user_id: str, category: ArchiveCategory) -> int:
        with self._lock:
            return sum(
                1
                for record in self._records.values()
                if record.user_id == user_id and record.category == category
            )

    async def save(
        self,
        user_id: str,
        category: ArchiveCategory,
        title: str,
        report: Dict[str, Any],
        source_url: Optional[str] = None,
    ) -> str:
        archive_id = _new_archive_id()
        record = ArchiveRecord(
            id=archive_id,
            user_id=user_id,
            category=category,
            title=str(title or "").strip(),
            report=dict(report or {}),
            source_url=source_url,
        )
        with self._lock:
            self._records[archive_id] = record
        return archive_id

    async def get_by_id(self, archive_id: str) -> Optional[ArchiveRecord]:
        with self._lock:
            record = self._records.get(archive_id)
            return record.model_copy(deep=True) if record else None

    async def list_for_user(
        self,
        user_id: str,
        category: Optional[ArchiveCategory] = None,
        limit: int = 50,
    ) -> List[ArchiveRecord]:
        with self._lock:
            rows = [
                record.model_copy(deep=True)
                for record in self._records.values()
                if record.user_id == user_id and (category is None or record.category == category)
            ]
        rows.sort(key=lambda record: record.created_at, reverse=True)
        return rows[: max(0, int(limit))]
