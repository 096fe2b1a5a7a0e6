"""Media reference validation and duration helpers."""

from .durations import format_duration, parse_clock, parse_iso_duration
from .url_validator import (
    classify_reference,
    extract_video_id,
    validate_article_reference,
    validate_video_reference,
)

__all__ = [
    "classify_reference",
    "extract_video_id",
    "format_duration",
    "parse_clock",
    "parse_iso_duration",
    "validate_article_reference",
    "validate_video_reference",
]
