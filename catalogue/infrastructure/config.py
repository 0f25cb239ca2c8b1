"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Content service
    content_api_url: str = "http://content-api:1337/api"
    content_api_token: str | None = None
    content_api_timeout: float = 10.0

    # Listing
    page_size: int = 25
    bulk_page_size: int = 1000
    baseline_state: str = "Active"
    facet_counts_apply_keywords: bool = False

    # Cache durations (seconds)
    cache_ttl_category_types: float = 900.0
    cache_ttl_category_values: float = 900.0
    cache_ttl_products: float = 900.0
    cache_ttl_product_detail: float = 600.0
    cache_ttl_search: float = 120.0

    # Logging
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
