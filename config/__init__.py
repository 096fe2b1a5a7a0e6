"""
Configuration Management Module
"""
from .settings import (
    Settings,
    get_settings,
    get_youtube_settings,
    get_analysis_settings,
    get_audit_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_youtube_settings",
    "get_analysis_settings",
    "get_audit_settings",
]
