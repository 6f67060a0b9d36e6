"""
Configuration settings for the shipping label API
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


DEFAULT_EASYSHIP_BASE_URL = "https://public-api.easyship.com/2024-09"
DEFAULT_ALLOWED_CARRIERS = ["USPS", "UPS", "FEDEX"]


class EasyshipSettings(BaseSettings):
    """Easyship integration settings"""

    easyship_token: str = Field(default="", env="EASYSHIP_TOKEN")
    easyship_api_base_url: str = Field(default=DEFAULT_EASYSHIP_BASE_URL, env="EASYSHIP_API_BASE_URL")
    easyship_allowed_carriers: str = Field(default="", env="EASYSHIP_ALLOWED_CARRIERS")  # CSV, es. "USPS,UPS"
    easyship_mock: bool = Field(default=False, env="EASYSHIP_MOCK")
    easyship_debug: bool = Field(default=False, env="EASYSHIP_DEBUG")

    # HTTP
    easyship_timeout_seconds: float = Field(default=30.0, env="EASYSHIP_TIMEOUT_SECONDS")
    easyship_max_retries: int = Field(default=3, env="EASYSHIP_MAX_RETRIES")
    easyship_retry_base_delay: float = Field(default=1.0, env="EASYSHIP_RETRY_BASE_DELAY")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def base_url(self) -> str:
        base = (self.easyship_api_base_url or "").strip() or DEFAULT_EASYSHIP_BASE_URL
        return base.rstrip("/")

    @property
    def allowed_carriers(self) -> List[str]:
        """Carrier ammessi, normalizzati in maiuscolo e senza duplicati"""
        raw = self.easyship_allowed_carriers or ""
        parsed: List[str] = []
        for part in raw.split(","):
            carrier = part.strip().upper()
            if carrier and carrier not in parsed:
                parsed.append(carrier)
        return parsed or list(DEFAULT_ALLOWED_CARRIERS)


@lru_cache()
def get_easyship_settings() -> EasyshipSettings:
    """Get cached Easyship settings instance"""
    return EasyshipSettings()


class ShippingLabelSettings(BaseSettings):
    """Quote cache, locking and reconciliation settings"""

    # Quote cache
    quote_cache_ttl_seconds: int = Field(default=1800, env="QUOTE_CACHE_TTL_SECONDS")  # 30 minutes
    adhoc_quote_cache_size: int = Field(default=256, env="ADHOC_QUOTE_CACHE_SIZE")
    adhoc_quote_cache_ttl_seconds: int = Field(default=300, env="ADHOC_QUOTE_CACHE_TTL_SECONDS")
    default_label_currency: str = Field(default="USD", env="DEFAULT_LABEL_CURRENCY")

    # Per-shipment locking: memory, redis
    shipment_lock_backend: str = Field(default="memory", env="SHIPMENT_LOCK_BACKEND")
    shipment_lock_ttl_seconds: int = Field(default=120, env="SHIPMENT_LOCK_TTL_SECONDS")
    redis_url: str = Field(default="redis://localhost:6379/0", env="REDIS_URL")

    # Label status reconciliation
    label_reconciliation_enabled: bool = Field(default=False, env="LABEL_RECONCILIATION_ENABLED")
    label_reconciliation_base_interval: int = Field(default=60, env="LABEL_RECONCILIATION_BASE_INTERVAL")
    label_reconciliation_max_interval: int = Field(default=3600, env="LABEL_RECONCILIATION_MAX_INTERVAL")
    label_reconciliation_jitter: float = Field(default=0.2, env="LABEL_RECONCILIATION_JITTER")
    label_reconciliation_batch_size: int = Field(default=50, env="LABEL_RECONCILIATION_BATCH_SIZE")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_shipping_label_settings() -> ShippingLabelSettings:
    """Get cached shipping label settings instance"""
    return ShippingLabelSettings()


class AuthSettings(BaseSettings):
    """Bearer token validation (i token sono emessi da un servizio di login esterno)"""

    secret_key: str = Field(default="", env="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", env="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=1440, env="ACCESS_TOKEN_EXPIRE_MINUTES")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_auth_settings() -> AuthSettings:
    return AuthSettings()
