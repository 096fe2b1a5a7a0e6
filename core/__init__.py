"""Core contracts and shared types."""

from .contracts import (
    AnalysisOutcome,
    ArchiveCategory,
    ArchiveRecord,
    AuditMode,
    AuditOutcome,
    AuditRequest,
    AuditResult,
    AuditState,
    CostEstimate,
    MediaReference,
    ReferenceKind,
    ScrapedContent,
    Transaction,
    TransactionMetadata,
    TransactionType,
    ValidationResult,
    VideoMetadata,
)

__all__ = [
    "AnalysisOutcome",
    "ArchiveCategory",
    "ArchiveRecord",
    "AuditMode",
    "AuditOutcome",
    "AuditRequest",
    "AuditResult",
    "AuditState",
    "CostEstimate",
    "MediaReference",
    "ReferenceKind",
    "ScrapedContent",
    "Transaction",
    "TransactionMetadata",
    "TransactionType",
    "ValidationResult",
    "VideoMetadata",
]
