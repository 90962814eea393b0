from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables with ARAGORN_ prefix."""

    # Links
    base_uri: str = "http://localhost:3000"
    # Wire format
    json_api_version: str = "1.0"
    # Pagination
    default_page_size: int = 20
    maximum_page_size: int = 20
    # Users
    allowed_email_errors: int = 3
    # App
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="ARAGORN_", env_file=".env")


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()
