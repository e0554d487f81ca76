"""Configuration management for the IPinfo lookup client."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="IPINFO_", case_sensitive=False)

    # API Configuration
    access_token: str | None = None
    api_url: str = "https://ipinfo.io"
    api_lite_url: str = "https://api.ipinfo.io/lite"
    api_core_url: str = "https://api.ipinfo.io/lookup"
    request_timeout_seconds: float = 2.0

    # Cache Configuration
    cache_maxsize: int = 4096
    cache_ttl_seconds: int = 86400  # 24 hours

    # Batch Configuration
    batch_max_size: int = 1000
    batch_timeout_seconds: float = 5.0

    # Reference tables (country names, currencies, ...); None means bundled data
    data_dir: str | None = None

    log_level: str = "INFO"


# Global settings instance
settings = Settings()
