"""Configuration for ReversR."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # API Keys (comma-separated; each key is one pool credential)
    generation_api_keys: str = ""
    generation_base_url: str = ""

    # Model Configuration
    generation_model: str = "claude-3-5-sonnet-20241022"
    max_output_tokens: int = 4096
    temperature: float = 0.7

    # Response Cache
    cache_max_entries: int = Field(default=50, gt=0)
    cache_ttl_seconds: float = Field(default=300.0, gt=0)

    # Credential Pool
    default_cooldown_seconds: float = Field(default=60.0, ge=0)

    # Attempts per call site
    standard_max_attempts: int = Field(default=3, gt=0)
    image_max_attempts: int = Field(default=5, gt=0)

    # Backoff after a rate limit
    rate_limit_base_delay: float = Field(default=4.0, ge=0)
    rate_limit_max_delay: float = Field(default=60.0, ge=0)
    rate_limit_jitter: float = Field(default=1.0, ge=0)

    # Backoff after any other failure
    generic_base_delay: float = Field(default=0.5, ge=0)
    generic_max_delay: float = Field(default=5.0, ge=0)
    generic_jitter: float = Field(default=0.25, ge=0)

    # Status codes treated as rate limits (comma-separated, e.g. "429,503")
    rate_limit_status_codes: str = "429"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def api_keys(self) -> list[str]:
        """Configured credentials, in rotation order."""
        return [key.strip() for key in self.generation_api_keys.split(",") if key.strip()]

    @property
    def rate_limit_codes(self) -> frozenset[int]:
        return frozenset(
            int(code) for code in self.rate_limit_status_codes.split(",") if code.strip()
        )


settings = Settings()
