"""
Custom Exceptions
Error taxonomy for audits, metadata lookups and persistence
"""
from typing import Optional


class FactAuditError(Exception):
    """Base exception for the audit service"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(FactAuditError):
    """Missing or invalid configuration"""
    pass


class ValidationError(FactAuditError):
    """Malformed or empty media reference. Fixable locally, never retried."""

    def __init__(self, message: str, reference: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.reference = reference


class MetadataError(FactAuditError):
    """Video metadata lookup failed"""

    def __init__(self, message: str, reference: str = None, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, kwargs)
        self.reference = reference
        self.status_code = status_code


class InsufficientPointsError(FactAuditError):
    """Balance does not cover the audit cost (pre-flight or upstream)"""

    def __init__(self, message: str, required: Optional[int] = None, balance: Optional[int] = None, **kwargs):
        super().__init__(message, kwargs)
        self.required = required
        self.balance = balance


class RateLimitError(FactAuditError):
    """Upstream throttling"""

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, kwargs)
        self.retry_after = retry_after


class AnalysisError(FactAuditError):
    """Opaque upstream analysis failure"""

    def __init__(self, message: str, cause: Exception = None, code: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.cause = cause
        self.code = code


class AuthRequiredError(FactAuditError):
    """No active session. Callers redirect to sign-in after `redirect_delay` seconds."""

    def __init__(self, message: str, redirect_delay: float = 1.5, **kwargs):
        super().__init__(message, kwargs)
        self.redirect_delay = redirect_delay


class AuditInProgressError(FactAuditError):
    """A second submission arrived while an audit is still running"""
    pass


class StorageError(FactAuditError):
    """Persistence error"""
    pass


class ArchiveLimitError(StorageError):
    """Per-category archive cap reached"""

    def __init__(self, message: str, category: str = None, limit: Optional[int] = None, **kwargs):
        super().__init__(message, kwargs)
        self.category = category
        self.limit = limit


class LedgerError(StorageError):
    """Transaction ledger could not be read"""
    pass
