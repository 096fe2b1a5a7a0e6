"""
Settings Configuration
Pydantic-based configuration loading and validation
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class YouTubeSettings(BaseSettings):
    """YouTube Data API configuration"""
    api_key: Optional[str] = Field(default=None, description="YouTube Data API v3 key")
    api_url: str = Field(
        default="https://www.googleapis.com/youtube/v3/videos",
        description="videos endpoint",
    )

    class Config:
        env_prefix = "YOUTUBE_"


class AnalysisServiceSettings(BaseSettings):
    """Analysis execution service configuration"""
    base_url: str = Field(default="http://localhost:8080", description="Analysis service root URL")
    stream_timeout: float = Field(default=900.0, description="Streaming analysis timeout (seconds)")
    model_name: str = Field(default="gemini-2.5-flash", description="Model requested from the service")
    api_token: Optional[str] = Field(default=None, description="Bearer token sent to the analysis service")

    class Config:
        env_prefix = "ANALYSIS_"


class AuditSettings(BaseSettings):
    """Audit orchestrator timing"""
    debounce_ms: int = Field(default=800, description="Metadata lookup debounce window (ms)")
    phase_interval_sec: float = Field(default=3.5, description="Loading phase rotation interval (s)")
    auth_redirect_delay_sec: float = Field(default=1.5, description="Delay before redirecting to sign-in (s)")

    class Config:
        env_prefix = "AUDIT_"


class GeneralSettings(BaseSettings):
    """General settings"""
    request_timeout: int = Field(default=30, description="HTTP request timeout (s)")
    max_retries: int = Field(default=3, description="Maximum attempts for transient lookup failures")
    retry_delay: int = Field(default=1, description="Base retry delay (s)")
    log_level: str = Field(default="INFO", description="Root log level")


class Settings(BaseSettings):
    """Aggregated settings"""

    youtube: YouTubeSettings = Field(default_factory=YouTubeSettings)
    analysis: AnalysisServiceSettings = Field(default_factory=AnalysisServiceSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings, reading config/.env first when present."""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            youtube=YouTubeSettings(),
            analysis=AnalysisServiceSettings(),
            audit=AuditSettings(),
            general=GeneralSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings singleton"""
    return Settings.load_from_env_file()


def get_youtube_settings() -> YouTubeSettings:
    return get_settings().youtube


def get_analysis_settings() -> AnalysisServiceSettings:
    return get_settings().analysis


def get_audit_settings() -> AuditSettings:
    return get_settings().audit
