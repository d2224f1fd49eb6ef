"""
Configuration module with environment-based settings.
Supports: development, staging, production
"""
from pydantic_settings import BaseSettings
from decimal import Decimal
from typing import List, Optional
from functools import lru_cache
from dotenv import load_dotenv
import os

# Load .env file
load_dotenv()


class BaseConfig(BaseSettings):
    """Base configuration shared across all environments."""

    # Application
    APP_NAME: str = "pos-terminal"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Scanning device (ESP8266 WebSocket bridge)
    SCANNER_ENABLED: bool = True
    SCANNER_WS_URL: str = "ws://esp8266-scanner.local:81"
    STAFF_SCANNER_WS_URL: Optional[str] = None  # Falls back to SCANNER_WS_URL
    SCANNER_RECONNECT_DELAY: float = 5.0

    # Checkout session
    TAX_RATE: Decimal = Decimal("0.08")
    AUTO_RESET_DELAY: float = 5.0
    PAYMENT_SETTLEMENT_DELAY: float = 2.0

    # Terminal cosmetics
    CUSTOMER_QUICK_ADD_LIMIT: int = 3
    STAFF_QUICK_ADD_LIMIT: int = 4

    # Catalog / inventory
    CATALOG_FILE: Optional[str] = None
    INVENTORY_API_URL: Optional[str] = None
    INVENTORY_API_KEY: Optional[str] = None
    CATALOG_REFRESH_MINUTES: int = 15

    # HTTP
    CORS_ORIGINS: List[str] = ["*"]
    SLOW_REQUEST_THRESHOLD: float = 5.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }

    @property
    def staff_scanner_url(self) -> str:
        return self.STAFF_SCANNER_WS_URL or self.SCANNER_WS_URL


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"

    # Simulator script listens here (see simulate_scanner.py)
    SCANNER_WS_URL: str = "ws://localhost:8765"


class ProductionConfig(BaseConfig):
    """Production environment configuration."""
    ENVIRONMENT: str = "production"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"

    # Kiosks are served from the terminal host only
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]


class StagingConfig(BaseConfig):
    """Staging environment configuration."""
    ENVIRONMENT: str = "staging"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings() -> BaseConfig:
    """
    Factory function that returns the appropriate config based on ENVIRONMENT.
    Uses lru_cache for singleton pattern.
    """
    env = os.getenv("ENVIRONMENT", "development").lower()

    config_map = {
        "development": DevelopmentConfig,
        "dev": DevelopmentConfig,
        "staging": StagingConfig,
        "stage": StagingConfig,
        "production": ProductionConfig,
        "prod": ProductionConfig,
    }

    config_class = config_map.get(env, DevelopmentConfig)
    return config_class()


# Default settings instance
settings = get_settings()
