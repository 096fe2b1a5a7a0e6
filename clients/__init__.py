"""
Clients Module
Outbound clients for metadata lookup and analysis execution
"""
from .base import BaseClient
from .analysis_gateway import AnalysisGateway, classify_upstream_error, extract_report
from .metadata_resolver import MetadataResolver
from .sse import SSEEvent, iter_sse_events

__all__ = [
    "BaseClient",
    "AnalysisGateway",
    "MetadataResolver",
    "SSEEvent",
    "classify_upstream_error",
    "extract_report",
    "iter_sse_events",
]
