"""Application configuration management using Pydantic Settings."""

from typing import List
from decimal import Decimal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./reviewflow.db"

    # API
    API_V1_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str] = ['http://localhost:3000']

    # Environment
    ENVIRONMENT: str = "development"

    # Review links
    REVIEW_LINK_TTL_SECONDS: int = 7 * 24 * 3600  # Links valid for 7 days
    REVIEW_TOKEN_BYTES: int = 32

    # Deliveries
    DELIVERY_BATCH_WINDOW_SECONDS: int = 120  # Multi-file submissions within 2 minutes form one batch
    DEFAULT_ALLOWED_DURATION_MINUTES: int = 300

    # Descriptors
    MAX_ITEM_QUANTITY: int = 100  # Per descriptor entry
    MAX_LINE_ITEMS: int = 500  # Per parent

    # Earnings
    UNIT_PRICE: Decimal = Decimal("40")  # Per Post / Miniature, per 2 carousel pages
    CAROUSEL_DEFAULT_PAGES: int = 4

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v) -> List[str]:
        """Parse CORS_ORIGINS from JSON string to list."""
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("UNIT_PRICE", mode="before")
    @classmethod
    def parse_decimal(cls, v) -> Decimal:
        """Parse string to Decimal for precise arithmetic."""
        if isinstance(v, str):
            return Decimal(v)
        return v


# Global settings instance
settings = Settings()
