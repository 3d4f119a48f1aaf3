"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Engine settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="UIFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Ingest
    max_record_size: int = Field(
        default=64 * 1024, gt=0, description="Max bytes per streamed record line"
    )

    # Editing
    zone_edge_ratio: float = Field(
        default=0.2, gt=0.0, lt=0.5, description="Fraction of node height used for before/after zones"
    )
    history_limit: int = Field(default=0, ge=0, description="Max history entries (0 = unbounded)")

    # Validation
    validate_edits: bool = Field(default=False, description="Check tree invariants after every edit")
    max_tree_depth: int = Field(default=64, gt=0, description="Max nesting depth accepted by validation")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
