"""
Storage Module
Archive and ledger persistence, archive quota guard
"""
from .archive_store import ArchiveStore, InMemoryArchiveStore
from .ledger_store import InMemoryLedgerStore, JsonFileLedgerStore, LedgerStore
from .quota import ARCHIVE_LIMITS, ArchiveQuotaGuard, archive_title, category_for

__all__ = [
    "ARCHIVE_LIMITS",
    "ArchiveQuotaGuard",
    "ArchiveStore",
    "InMemoryArchiveStore",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    "LedgerStore",
    "archive_title",
    "category_for",
]
