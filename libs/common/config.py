from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "test", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    # Requests slower than this are logged as warnings
    SLOW_REQUEST_MS: float = 1000.0
    SERVICE_NAME: str = "order-service"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./orders.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    # Seconds a SQLite writer waits for the database lock before failing
    SQLITE_BUSY_TIMEOUT: float = 15.0

    # Auth (tokens are issued by the identity service, we only verify them)
    JWT_SECRET: str = "test-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    ADMIN_ROLE: str = "admin"

    # Notification collaborator
    COMMUNICATIONS_SERVICE_URL: str = "http://communications-service:8004"
    NOTIFICATION_TIMEOUT: float = 10.0

    # Pricing policy
    TAX_RATE: Decimal = Decimal("0.10")
    FREE_SHIPPING_THRESHOLD_CENTS: int = 10_000  # $100.00
    FLAT_SHIPPING_CENTS: int = 1_000  # $10.00

    # Orders
    ORDER_NUMBER_PREFIX: str = "ORD"
    ORDER_NUMBER_MAX_ATTEMPTS: int = 5
    ORDER_CREATE_MAX_ATTEMPTS: int = 3
    DEFAULT_PAYMENT_METHOD: str = "COD"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    DEFAULT_RATE_LIMIT: str = "100/minute"
    ORDER_CREATE_RATE_LIMIT: str = "10/minute"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
