"""
Application Configuration
"""
import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Database Configuration
    db_type: str = "sqlite"  # sqlite, postgresql
    sqlite_path: str = "memory_insights.db"
    postgresql_url: Optional[str] = None

    # Primary provider (OpenAI compatible, paid)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_input_cost_per_million: float = 0.150
    openai_output_cost_per_million: float = 0.600
    openai_timeout_seconds: float = 30.0

    # Secondary provider (Hugging Face router, free tier)
    huggingface_api_key: Optional[str] = None
    huggingface_base_url: str = "https://router.huggingface.co/v1"
    huggingface_model: str = "meta-llama/Llama-3.2-3B-Instruct"
    huggingface_timeout_seconds: float = 30.0

    # Cascade
    primary_cooldown_seconds: float = 60.0
    provider_max_retries: int = 2

    # Regeneration quotas
    regenerations_per_insight: int = 3
    regenerations_per_month: int = 3

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/memory_insights.log"

    @property
    def database_url(self) -> str:
        """Get database URL based on db_type"""
        if self.db_type == "sqlite":
            return f"sqlite:///{self.sqlite_path}"
        elif self.db_type == "postgresql" and self.postgresql_url:
            return self.postgresql_url
        else:
            return f"sqlite:///{self.sqlite_path}"


# Global settings instance
settings = Settings()
