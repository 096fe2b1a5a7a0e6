"""Pure predicates classifying user-entered references as video or article URLs."""

from __future__ import annotations

import re
from typing import List, Optional, Pattern
from urllib.parse import urlparse

from core import MediaReference, ReferenceKind, ValidationResult


MSG_EMPTY = "Моля, въведете URL"
MSG_INVALID_VIDEO = (
    "Невалиден YouTube URL. Моля, използвайте формат: https://www.youtube.com/watch?v=... "
    "или https://youtu.be/... или https://m.youtube.com/watch?v=..."
)
MSG_BAD_SCHEME = "URL трябва да започва с http:// или https://"
MSG_NO_HOST = "Невалиден URL формат"
MSG_INVALID_URL = "Невалиден URL формат. Моля, въведете валиден URL адрес."

# watch, short, embed, mobile and shorts links
_VIDEO_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^https?://(www\.|m\.)?(youtube\.com|youtu\.be)/.+"),
    re.compile(r"^https?://youtube\.com/watch\?v=[\w-]+"),
    re.compile(r"^https?://youtu\.be/[\w-]+"),
    re.compile(r"^https?://youtube\.com/embed/[\w-]+"),
    re.compile(r"^https?://m\.youtube\.com/watch\?v=[\w-]+"),
    re.compile(r"^https?://youtube\.com/shorts/[\w-]+"),
    re.compile(r"^https?://m\.youtube\.com/shorts/[\w-]+"),
]

_VIDEO_ID_PATTERNS: List[Pattern[str]] = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/embed/([^&\n?#]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#]+)"),
    re.compile(r"(?:m\.youtube\.com/watch\?v=|m\.youtube\.com/shorts/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/shorts/([^&\n?#]+)"),
]


def validate_video_reference(value: str) -> ValidationResult:
    text = str(value or "").strip()
    if not text:
        return ValidationResult(valid=False, error=MSG_EMPTY)
    if not any(pattern.match(text) for pattern in _VIDEO_PATTERNS):
        return ValidationResult(valid=False, error=MSG_INVALID_VIDEO)
    return ValidationResult(valid=True)


def validate_article_reference(value: str) -> ValidationResult:
    """Structural well-formedness only: http(s) scheme plus a host."""
    text = str(value or "").strip()
    if not text:
        return ValidationResult(valid=False, error=MSG_EMPTY)
    try:
        parsed = urlparse(text)
    except ValueError:
        return ValidationResult(valid=False, error=MSG_INVALID_URL)
    if not parsed.scheme:
        return ValidationResult(valid=False, error=MSG_INVALID_URL)
    if parsed.scheme.lower() not in {"http", "https"}:
        return ValidationResult(valid=False, error=MSG_BAD_SCHEME)
    if not parsed.hostname:
        return ValidationResult(valid=False, error=MSG_NO_HOST)
    return ValidationResult(valid=True)


def classify_reference(value: str) -> MediaReference:
    """Video when the video predicate holds, otherwise an article candidate."""
    if validate_video_reference(value).valid:
        return MediaReference(raw=value, kind=ReferenceKind.VIDEO)
    return MediaReference(raw=value, kind=ReferenceKind.LINK)


def extract_video_id(value: str) -> Optional[str]:
    text = str(value or "").strip()
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return None
