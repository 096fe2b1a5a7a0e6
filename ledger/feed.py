"""
Ledger Feed
Classification, filtering and sorting of a user's point transactions.

The pipeline order is fixed: tab -> category -> search -> sort. Search only
narrows what the tab and category stages already kept.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from core import ArchiveCategory, Transaction, TransactionType
from storage.ledger_store import LedgerStore


logger = logging.getLogger(__name__)


class LedgerTab(str, Enum):
    DEDUCTIONS = "deductions"
    PURCHASES = "purchases"


class CategoryFilter(str, Enum):
    ALL = "all"
    VIDEO = "video"
    LINK = "link"
    SOCIAL = "social"


class SortOrder(str, Enum):
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    POINTS_DESC = "points_desc"
    VIDEO = "video"
    LINK = "link"


class LedgerSummary(BaseModel):
    """Aggregates over the unfiltered list."""

    deduction_count: int = 0
    credit_count: int = 0
    total_spent: int = 0
    total_purchased: int = 0


_CREDIT_TYPES = {TransactionType.PURCHASE, TransactionType.BONUS}


# ----------------------------------------------------------------------
# Classification
# ----------------------------------------------------------------------

def _has_video_id(tx: Transaction) -> bool:
    return bool(tx.metadata and tx.metadata.video_id)


def _has_video_title(tx: Transaction) -> bool:
    return bool(tx.metadata and tx.metadata.video_title)


def looks_like_video(tx: Transaction) -> bool:
    return _has_video_id(tx) or _has_video_title(tx) or "видео" in tx.description.lower()


def looks_like_link(tx: Transaction) -> bool:
    desc = tx.description
    if "Линк" in desc or "статия" in desc:
        return True
    return tx.type == TransactionType.DEDUCTION and not _has_video_id(tx) and "видео" not in desc


def looks_like_social(tx: Transaction) -> bool:
    desc = tx.description
    return "social" in desc or "пост" in desc or "коментар" in desc


_HEURISTICS = {
    ArchiveCategory.VIDEO: looks_like_video,
    ArchiveCategory.LINK: looks_like_link,
    ArchiveCategory.SOCIAL: looks_like_social,
}


def matches_category(tx: Transaction, category: ArchiveCategory) -> bool:
    """Explicit tags are authoritative; untagged legacy rows fall back to text heuristics."""
    if tx.category is not None:
        return tx.category == category
    return _HEURISTICS[category](tx)


# ----------------------------------------------------------------------
# Pipeline stages
# ----------------------------------------------------------------------

def _in_tab(tx: Transaction, tab: LedgerTab) -> bool:
    if tab == LedgerTab.DEDUCTIONS:
        return tx.type == TransactionType.DEDUCTION
    return tx.type in _CREDIT_TYPES


def _matches_search(tx: Transaction, term: str) -> bool:
    meta = tx.metadata
    title = (meta.video_title or "").lower() if meta else ""
    author = (meta.video_author or "").lower() if meta else ""
    return term in title or term in author or term in tx.description.lower()


def sort_transactions(transactions: Iterable[Transaction], order: SortOrder = SortOrder.DATE_DESC) -> List[Transaction]:
    """Stable sort; category orders break ties by newest first."""
    items = list(transactions)
    if order == SortOrder.DATE_ASC:
        return sorted(items, key=lambda tx: tx.created_at)
    if order == SortOrder.POINTS_DESC:
        return sorted(items, key=lambda tx: abs(tx.amount), reverse=True)

    newest_first = sorted(items, key=lambda tx: tx.created_at, reverse=True)
    if order == SortOrder.VIDEO:
        return sorted(newest_first, key=lambda tx: not matches_category(tx, ArchiveCategory.VIDEO))
    if order == SortOrder.LINK:
        return sorted(newest_first, key=lambda tx: not matches_category(tx, ArchiveCategory.LINK))
    return newest_first


def build_feed(
    transactions: Sequence[Transaction],
    tab: LedgerTab = LedgerTab.DEDUCTIONS,
    category: CategoryFilter = CategoryFilter.ALL,
    search: Optional[str] = None,
    sort: SortOrder = SortOrder.DATE_DESC,
) -> List[Transaction]:
    """
    Filter then sort a transaction list for display.

    Args:
        transactions: raw ledger rows in any order
        tab: deductions, or purchases (purchase + bonus)
        category: all / video / link / social
        search: case-insensitive substring over title, author, description
        sort: one of SortOrder

    Returns:
        A new list; the input is not modified
    """
    kept = [tx for tx in transactions if _in_tab(tx, tab)]

    if category != CategoryFilter.ALL:
        wanted = ArchiveCategory(category.value)
        kept = [tx for tx in kept if matches_category(tx, wanted)]

    term = (search or "").lower()
    if term:
        kept = [tx for tx in kept if _matches_search(tx, term)]

    return sort_transactions(kept, sort)


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    summary = LedgerSummary()
    for tx in transactions:
        if tx.type == TransactionType.DEDUCTION:
            summary.deduction_count += 1
            summary.total_spent += abs(tx.amount)
        elif tx.type in _CREDIT_TYPES:
            summary.credit_count += 1
            summary.total_purchased += tx.amount
    return summary


class LedgerFeed:
    """A user's loaded transaction history plus the current feed view."""

    def __init__(self, store: LedgerStore, user_id: str) -> None:
        self._store = store
        self._user_id = user_id
        self._transactions: List[Transaction] = []
        self.last_error: Optional[str] = None

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    async def refresh(self) -> bool:
        """Reload from the ledger. On failure the previous list is kept."""
        try:
            rows = await self._store.list_for_user(self._user_id)
        except Exception as exc:
            logger.error(f"Failed to load transactions for {self._user_id}: {exc}")
            self.last_error = str(exc)
            return False
        self._transactions = list(rows)
        self.last_error = None
        return True

    def view(
        self,
        tab: LedgerTab = LedgerTab.DEDUCTIONS,
        category: CategoryFilter = CategoryFilter.ALL,
        search: Optional[str] = None,
        sort: SortOrder = SortOrder.DATE_DESC,
    ) -> List[Transaction]:
        return build_feed(self._transactions, tab, category, search, sort)

    def summary(self) -> LedgerSummary:
        return summarize(self._transactions)
