"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from recipestructurer.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Extraction service (OpenAI-compatible chat completions)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    standard_model: str = "gpt-4o-mini"
    high_capacity_model: str = "gpt-4o"
    high_capacity_word_threshold: int = 100_000
    extraction_temperature: float = 0.2
    extraction_timeout: float = 120.0

    # Recipe page fetching
    fetch_timeout: float = 30.0
    fetch_max_retries: int = 3

    # Foodbatch export
    foodbatch_base_url: str = "https://api.foodbatch.com"
    foodbatch_api_token: str = ""
    foodbatch_timeout: float = 30.0
    export_recipe_name: str = "Imported Recipe"
    catalog_match_threshold: float = 90.0  # rapidfuzz score, 0-100

    # Application
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def origins(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def require_openai_api_key(self) -> str:
        """Return the extraction service credential or fail at startup."""
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        return self.openai_api_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
