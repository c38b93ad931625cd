from pydantic_settings import BaseSettings
from typing import List, Any, Optional
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_int_list(v: Any) -> List[int]:
    """Parse a comma-separated list of integers (e.g. "1,3,7,14,30")"""
    if isinstance(v, list):
        return [int(item) for item in v]
    if isinstance(v, str):
        return [int(item.strip()) for item in v.split(',') if item.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "UniPortal"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_ECHO: bool = False

    # ==========================================
    # Redis (optional - rate limit storage)
    # ==========================================
    REDIS_URL: Optional[str] = None

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12  # 4 for dev (fast), 12 for prod (secure)

    # Bootstrap token for POST /auth/setup-admin (empty disables the endpoint)
    ADMIN_SETUP_TOKEN: str = ""

    # Seeded on startup when both are set
    DEFAULT_ADMIN_EMAIL: str = ""
    DEFAULT_ADMIN_PASSWORD: str = ""

    # ==========================================
    # Multi-factor authentication
    # ==========================================
    MFA_ISSUER: str = "UniPortal"
    MFA_RECOVERY_CODE_COUNT: int = 10
    MFA_RECOVERY_CODE_LENGTH: int = 16

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000

    # ==========================================
    # Request limits
    # ==========================================
    MAX_REQUEST_SIZE: int = 10 * 1024 * 1024  # 10MB

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # ==========================================
    # Wallet (amounts in kobo, 100 kobo = 1 NGN)
    # ==========================================
    CURRENCY: str = "NGN"
    WALLET_MIN_FUNDING: int = 10_000  # ₦100
    WALLET_MAX_FUNDING: int = 100_000_000  # ₦1,000,000

    # ==========================================
    # Payment Gateways
    # ==========================================
    PAYMENT_CALLBACK_URL: str = "http://localhost:3000/payment-status"
    PAYMENT_DEMO_ENABLED: bool = False
    PAYMENT_REQUEST_TIMEOUT: int = 30  # seconds
    PAYSTACK_BASE_URL: str = "https://api.paystack.co"
    FLUTTERWAVE_BASE_URL: str = "https://api.flutterwave.com"
    KORAPAY_BASE_URL: str = "https://api.korapay.com"

    # ==========================================
    # Ads
    # ==========================================
    AD_DURATION_OPTIONS_STR: str = "1,3,7,14,30"
    AD_SWEEP_ENABLED: bool = True
    AD_SWEEP_INTERVAL_SECONDS: int = 300  # 5 minutes

    @property
    def AD_DURATION_OPTIONS(self) -> List[int]:
        """Allowed ad durations in days"""
        return parse_int_list(self.AD_DURATION_OPTIONS_STR)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        Path(self.LOG_FILE).parent.mkdir(exist_ok=True, parents=True)

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


# Create settings instance
settings = Settings()
