"""
Utils Module
Logging and the shared exception hierarchy
"""
from .logger import setup_logger
from .exceptions import (
    FactAuditError,
    ConfigurationError,
    ValidationError,
    MetadataError,
    InsufficientPointsError,
    RateLimitError,
    AnalysisError,
    AuthRequiredError,
    AuditInProgressError,
    StorageError,
    ArchiveLimitError,
    LedgerError,
)

__all__ = [
    "setup_logger",
    "FactAuditError",
    "ConfigurationError",
    "ValidationError",
    "MetadataError",
    "InsufficientPointsError",
    "RateLimitError",
    "AnalysisError",
    "AuthRequiredError",
    "AuditInProgressError",
    "StorageError",
    "ArchiveLimitError",
    "LedgerError",
]
