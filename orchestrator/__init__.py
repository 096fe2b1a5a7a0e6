"""Audit orchestration primitives."""

from .debounce import Debouncer
from .progress import LOADING_PHASES, ProgressChannel, Ticker
from .service import AuditOrchestrator
from .session import InMemorySession, SessionContext

__all__ = [
    "AuditOrchestrator",
    "Debouncer",
    "InMemorySession",
    "LOADING_PHASES",
    "ProgressChannel",
    "SessionContext",
    "Ticker",
]
