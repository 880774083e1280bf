from pydantic_settings import BaseSettings
from typing import Optional
from enum import Enum


class Environment(str, Enum):

    """Runtime environment"""
    TESTING = "testing"
    PRODUCTION = "production"


class Settings(BaseSettings):

    # Application
    app_name: str = "Coaching Booking Pricing"
    app_version: str = "1.0.0"
    environment: Environment = Environment.TESTING
    debug: bool = True

    # Database
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "coaching_booking"
    db_user: str = "coaching"
    db_password: str = "coaching_password"

    # Redis (rule and coupon cache)
    redis_url: Optional[str] = None
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # Cache
    cache_enabled: bool = True
    discount_rule_cache_ttl: int = 300
    coupon_cache_ttl: int = 60

    # Pricing
    currency_symbol: str = "£"

    # Logging
    log_level: str = "INFO"

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def database_url_computed(self) -> str:
        """Database URL, built from parts unless given explicitly"""
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def redis_url_computed(self) -> str:
        """Redis URL, built from parts unless given explicitly"""
        if self.redis_url:
            return self.redis_url
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
