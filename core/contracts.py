"""Canonical data contracts for audits, ledger transactions and archive records."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditMode(str, Enum):
    """Analysis depth."""

    STANDARD = "standard"
    DEEP = "deep"


class ReferenceKind(str, Enum):
    """Discriminant of a user-supplied media reference."""

    VIDEO = "video"
    LINK = "link"


class ArchiveCategory(str, Enum):
    """Archive bucket; also the explicit category tag on transactions."""

    VIDEO = "video"
    LINK = "link"
    SOCIAL = "social"


class TransactionType(str, Enum):
    DEDUCTION = "deduction"
    PURCHASE = "purchase"
    BONUS = "bonus"


class AuditState(str, Enum):
    """Orchestrator lifecycle."""

    IDLE = "idle"
    RESOLVING_METADATA = "resolving_metadata"
    READY = "ready"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class AuditOutcome(str, Enum):
    SUCCESS = "success"
    INSUFFICIENT_POINTS = "insufficient_points"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


class ValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None


class MediaReference(BaseModel):
    """Raw reference string plus its kind."""

    model_config = ConfigDict(frozen=True)

    raw: str
    kind: ReferenceKind

    @field_validator("raw", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> str:
        return str(value or "").strip()


class VideoMetadata(BaseModel):
    """Resolved video metadata. Replaced wholesale when the reference changes."""

    model_config = ConfigDict(frozen=True)

    video_id: str
    title: str
    author: str
    duration_seconds: int = Field(ge=0)
    duration_formatted: str
    thumbnail_url: str = ""


class CostEstimate(BaseModel):
    """Point cost of one audit mode."""

    model_config = ConfigDict(frozen=True)

    mode: AuditMode
    points_cost: int = Field(ge=0)
    estimated_tokens: int = 0
    estimated_cost_usd: float = 0.0


class AuditRequest(BaseModel):
    """The orchestrator's transient unit of work."""

    reference: MediaReference
    mode: Optional[AuditMode] = None
    include_transcription: bool = True
    requested_at: datetime = Field(default_factory=_utcnow)


class ScrapedContent(BaseModel):
    url: str
    title: str = ""
    content: str = ""


class AnalysisOutcome(BaseModel):
    """Structured report plus the balance reported by the analysis service."""

    report: Dict[str, Any] = Field(default_factory=dict)
    new_balance: Optional[int] = None
    points_cost: Optional[int] = None


class AuditResult(BaseModel):
    """Tagged outcome of one audit request."""

    outcome: AuditOutcome
    reference: str
    kind: ReferenceKind
    report: Optional[Dict[str, Any]] = None
    new_balance: Optional[int] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == AuditOutcome.SUCCESS

    @classmethod
    def success(cls, reference: MediaReference, outcome: AnalysisOutcome) -> "AuditResult":
        return cls(
            outcome=AuditOutcome.SUCCESS,
            reference=reference.raw,
            kind=reference.kind,
            report=outcome.report,
            new_balance=outcome.new_balance,
        )

    @classmethod
    def insufficient_points(cls, reference: MediaReference, reason: str) -> "AuditResult":
        return cls(outcome=AuditOutcome.INSUFFICIENT_POINTS, reference=reference.raw, kind=reference.kind, reason=reason)

    @classmethod
    def rate_limited(cls, reference: MediaReference, reason: str) -> "AuditResult":
        return cls(outcome=AuditOutcome.RATE_LIMITED, reference=reference.raw, kind=reference.kind, reason=reason)

    @classmethod
    def failed(cls, reference: MediaReference, reason: str) -> "AuditResult":
        return cls(outcome=AuditOutcome.FAILED, reference=reference.raw, kind=reference.kind, reason=reason)


class TransactionMetadata(BaseModel):
    """Media details attached to a deduction."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    video_id: Optional[str] = None
    video_title: Optional[str] = None
    video_author: Optional[str] = None
    video_duration: Optional[Union[int, str]] = None
    thumbnail_url: Optional[str] = None


class Transaction(BaseModel):
    """Immutable ledger entry. Deduction amounts are negative."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    type: TransactionType
    amount: int
    description: str = ""
    created_at: datetime
    category: Optional[ArchiveCategory] = None
    metadata: Optional[TransactionMetadata] = None

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> str:
        return str(value or "")

    @field_validator("created_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ArchiveRecord(BaseModel):
    """A persisted audit report."""

    id: str
    user_id: str
    category: ArchiveCategory
    title: str
    report: Dict[str, Any] = Field(default_factory=dict)
    source_url: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
