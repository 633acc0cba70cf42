"""
Application configuration using pydantic-settings.

Loads configuration from environment variables with sensible defaults.
"""
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Values shipped in example .env files that must not be treated as real keys
PLACEHOLDER_API_KEYS = {"", "put_your_real_key_here"}


class Mode(str, Enum):
    """Whether LLM calls go to the hosted API or to the canned demo assistant."""

    LIVE = "live"
    DEMO = "demo"


@dataclass(frozen=True)
class CompletionConfig:
    """Everything a single text-completion call needs, passed explicitly at call time."""

    mode: Mode
    api_key: Optional[str] = None
    model: str = "claude-sonnet-4-20250514"
    api_url: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"
    max_tokens: int = 4096
    timeout_seconds: float = 120.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (SQLite for a single device)
    database_url: str = "sqlite:///./decision_os.db"

    # Hosted LLM
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_api_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_version: str = "2023-06-01"
    max_tokens: int = 4096
    llm_timeout_seconds: float = 120.0
    force_demo_mode: bool = False

    # Scan and prompt shaping
    scan_sample_rows: int = 15
    chat_sample_rows: int = 3
    text_preview_chars: int = 2000
    brief_scan_chars: int = 1200
    chat_history_messages: int = 6

    # Rate limits (slowapi syntax)
    llm_rate_limit: str = "30/minute"
    scan_rate_limit: str = "10/minute"

    # Decision journal
    default_review_days: int = 30
    decision_profile_threshold: int = 10

    # Application
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Error tracking; disabled without a DSN
    sentry_dsn: Optional[str] = None
    sentry_traces_sample_rate: float = 0.1
    environment: str = "development"

    @property
    def api_key(self) -> Optional[str]:
        """Get the configured API key, or None when missing or a placeholder."""
        key = (self.anthropic_api_key or "").strip()
        if key in PLACEHOLDER_API_KEYS:
            return None
        return key

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def api_configured(self) -> bool:
        return self.api_key is not None

    @property
    def mode(self) -> Mode:
        """Resolve LIVE or DEMO from key availability and the force flag."""
        if self.force_demo_mode or not self.api_configured:
            return Mode.DEMO
        return Mode.LIVE

    def completion_config(self, mode: Optional[Mode] = None) -> CompletionConfig:
        """Build the per-call LLM configuration."""
        return CompletionConfig(
            mode=mode or self.mode,
            api_key=self.api_key,
            model=self.anthropic_model,
            api_url=self.anthropic_api_url,
            api_version=self.anthropic_version,
            max_tokens=self.max_tokens,
            timeout_seconds=self.llm_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

# Clear cache on module load
get_settings.cache_clear()
