"""
Application configuration management
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Venuely"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Default to production-safe
    API_PREFIX: str = "/api/v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str  # Must be provided via environment

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50

    # JWT
    JWT_SECRET_KEY: str  # Must be provided via environment
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        if not v or v == "your-secret-key-change-this-in-production":
            raise ValueError("JWT_SECRET_KEY must be set to a secure value")
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    # Geocoding (OpenCage compatible)
    GEOCODING_API_URL: str = "https://api.opencagedata.com/geocode/v1/json"
    GEOCODING_API_KEY: str = ""
    GEOCODING_TIMEOUT_SECONDS: float = 5.0
    GEOCODE_CACHE_ENABLED: bool = True
    GEOCODE_CACHE_TTL: int = 86400

    # Venue search
    SEARCH_DEFAULT_RADIUS_KM: float = 10.0
    SEARCH_DEFAULT_LIMIT: int = 10
    SEARCH_MAX_LIMIT: int = 100

    # Payment
    PAYMENT_PROVIDER: str = "simulated"  # simulated | stripe
    PAYMENT_CURRENCY: str = "usd"
    PAYMENT_SIMULATION_DELAY_SECONDS: float = 1.0
    STRIPE_SECRET_KEY: str = ""

    @field_validator('PAYMENT_PROVIDER')
    @classmethod
    def validate_payment_provider(cls, v: str) -> str:
        v = v.lower()
        if v not in ("simulated", "stripe"):
            raise ValueError("PAYMENT_PROVIDER must be 'simulated' or 'stripe'")
        return v

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 100
    RATE_LIMIT_BOOKING_PER_MINUTE: int = 10

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Events
    UPCOMING_EVENTS_DEFAULT_LIMIT: int = 3

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
