"""Planboard configuration — settings, model tiers, assistant limits."""

from typing import Literal

from pydantic_settings import BaseSettings

ModelTier = Literal["sonnet", "haiku"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    anthropic_api_key: str = ""  # Empty = AI assistant unconfigured

    # Auth
    secret_key: str = "dev-secret-change-in-production"
    access_token_ttl_minutes: int = 1440  # 24 hours

    # Database
    database_url: str = "sqlite:///data/planboard.db"

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:5173"

    # "development" exposes stack traces in 500 responses
    environment: str = "development"
    log_level: str = "INFO"

    # Projects
    default_project_color: str = "#3b82f6"

    # LLM defaults
    default_max_retries: int = 1
    model_sonnet: str = "claude-sonnet-4-6"
    model_haiku: str = "claude-haiku-4-5-20251001"

    # Planning assistant
    assistant_model_tier: ModelTier = "sonnet"
    assistant_temperature: float = 0.7
    assistant_tasks_max_tokens: int = 1000
    assistant_subtasks_max_tokens: int = 500
    assistant_delays_max_tokens: int = 800
    assistant_chat_max_tokens: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


settings = Settings()


def get_model_map(s: Settings | None = None) -> dict[str, str]:
    """Resolve model map from settings (env-overridable)."""
    s = s or settings
    return {
        "sonnet": s.model_sonnet,
        "haiku": s.model_haiku,
    }
