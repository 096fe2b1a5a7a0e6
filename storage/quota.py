"""Archive quota guard: per-category caps checked against live counts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from core import ArchiveCategory, AuditResult, ReferenceKind
from utils.exceptions import ArchiveLimitError, StorageError
from .archive_store import ArchiveStore


logger = logging.getLogger(__name__)

ARCHIVE_LIMITS: Dict[ArchiveCategory, int] = {
    ArchiveCategory.VIDEO: 10,
    ArchiveCategory.LINK: 15,
    ArchiveCategory.SOCIAL: 15,
}

MSG_LIMIT_REACHED = "Достигнахте лимита за този тип анализи. Изтрийте стари от архива."

_DEFAULT_TITLES = {
    ArchiveCategory.VIDEO: "Видео анализ",
    ArchiveCategory.LINK: "Одит на статия",
    ArchiveCategory.SOCIAL: "Социален одит",
}


def category_for(kind: ReferenceKind) -> ArchiveCategory:
    return ArchiveCategory(kind.value)


def archive_title(report: Dict[str, Any], category: ArchiveCategory) -> str:
    """Video title, then summary title, then a per-category default."""
    title = report.get("videoTitle")
    if not title:
        summary = report.get("summary")
        if isinstance(summary, dict):
            title = summary.get("title")
    return str(title or _DEFAULT_TITLES[category])


class ArchiveQuotaGuard:
    """
    Gates archive saves on the per-category cap.

    The count is queried on every call. Check and save run under one lock so
    a burst of saves on this guard cannot overshoot the cap.
    """

    def __init__(self, store: ArchiveStore, limits: Optional[Dict[ArchiveCategory, int]] = None) -> None:
        self._store = store
        self._limits = dict(limits or ARCHIVE_LIMITS)
        self._lock = asyncio.Lock()

    def limit_for(self, category: ArchiveCategory) -> int:
        return self._limits[category]

    async def can_archive(self, user_id: str, category: ArchiveCategory) -> bool:
        used = await self._store.count_by_category(user_id, category)
        return used < self.limit_for(category)

    async def remaining(self, user_id: str, category: ArchiveCategory) -> int:
        used = await self._store.count_by_category(user_id, category)
        return max(0, self.limit_for(category) - used)

    async def save(
        self,
        user_id: str,
        category: ArchiveCategory,
        title: str,
        report: Dict[str, Any],
        source_url: Optional[str] = None,
    ) -> str:
        """
        Persist a report if the category still has room.

        Raises:
            ArchiveLimitError: cap met or exceeded; the store is untouched
        """
        async with self._lock:
            if not await self.can_archive(user_id, category):
                limit = self.limit_for(category)
                logger.info(f"Archive limit reached for {user_id}/{category.value} ({limit})")
                raise ArchiveLimitError(MSG_LIMIT_REACHED, category=category.value, limit=limit)
            archive_id = await self._store.save(user_id, category, title, report, source_url)

        logger.info(f"Archived {category.value} report {archive_id} for {user_id}")
        return archive_id

    async def archive_result(self, user_id: str, result: AuditResult) -> str:
        """Save a successful audit under its reference kind's category."""
        if not result.ok or result.report is None:
            raise StorageError("Only successful audits can be archived", {"outcome": result.outcome.value})
        category = category_for(result.kind)
        return await self.save(
            user_id,
            category,
            archive_title(result.report, category),
            result.report,
            source_url=result.reference,
        )
