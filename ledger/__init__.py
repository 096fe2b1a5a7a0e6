"""Transaction ledger feed."""

from .feed import (
    CategoryFilter,
    LedgerFeed,
    LedgerSummary,
    LedgerTab,
    SortOrder,
    build_feed,
    looks_like_link,
    looks_like_social,
    looks_like_video,
    matches_category,
    sort_transactions,
    summarize,
)

__all__ = [
    "CategoryFilter",
    "LedgerFeed",
    "LedgerSummary",
    "LedgerTab",
    "SortOrder",
    "build_feed",
    "looks_like_link",
    "looks_like_social",
    "looks_like_video",
    "matches_category",
    "sort_transactions",
    "summarize",
]
