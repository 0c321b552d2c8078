"""Configuration models."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from newsingest.core.enums import FeedPriority


class FeedSource(BaseModel):
    """RSS feed source. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    url: HttpUrl
    category: str = "General"
    priority: FeedPriority = FeedPriority.MEDIUM
    enabled: bool = True


class Config(BaseSettings):
    """Main application configuration from environment variables."""

    # OpenAI API
    openai_api_key: Optional[str] = Field(default=None)
    openai_base_url: Optional[str] = Field(default=None)
    model_small: str = "gpt-4o-mini"
    model_large: str = "gpt-4o"

    # Storage
    db_path: Path = Path("./newsingest.db")
    config_dir: Path = Path("./config")

    # Feed fetching
    user_agent: str = "newsingest/1.0 (news aggregator)"
    request_timeout_sec: float = Field(default=15.0, gt=0)
    connectivity_timeout_sec: float = Field(default=10.0, gt=0)
    max_items_per_feed: int = Field(default=10, gt=0)
    fetch_batch_size: int = Field(default=3, gt=0)
    fetch_batch_delay_sec: float = Field(default=1.0, ge=0.0)

    # Processing
    process_batch_size: int = Field(default=3, gt=0)
    process_batch_delay_sec: float = Field(default=1.0, ge=0.0)
    relevance_threshold: int = Field(default=3, ge=1, le=10)
    recent_window_hours: int = Field(default=24, gt=0)
    recent_articles_limit: int = Field(default=10, ge=0)

    # Provider rate limiting (shared by every LLM call site)
    llm_rate_per_sec: float = Field(default=3.0, gt=0.0)
    llm_burst: int = Field(default=6, ge=1)
    llm_max_retries: int = Field(default=3, ge=1)

    # Feature flags
    enable_moderation: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"
    log_dir: Optional[Path] = None

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_openai_configured(self) -> bool:
        """Whether an OpenAI API key is available."""
        return bool(self.openai_api_key)

    def validate_paths(self) -> None:
        """Create directories the application writes to."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
