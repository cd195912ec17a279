"""
Runtime configuration for the Herbstore API, read from the environment
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_PROJECT_ROOT / ".env")


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    app_env: str = os.getenv("APP_ENV", "development").strip().lower()
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./herbstore.db")

    # OTP login
    otp_secret: str = os.getenv("OTP_SECRET", "dev-otp-secret")
    otp_ttl_seconds: int = _int_env("OTP_TTL_SECONDS", 300)
    otp_max_attempts: int = _int_env("OTP_MAX_ATTEMPTS", 5)
    otp_daily_limit: int = _int_env("OTP_DAILY_LIMIT", 5)

    # Sessions
    customer_session_hours: int = _int_env("CUSTOMER_SESSION_HOURS", 36)
    admin_session_hours: int = _int_env("ADMIN_SESSION_HOURS", 24)
    bcrypt_rounds: int = _int_env("BCRYPT_ROUNDS", 12)

    # SMS gateway (2Factor)
    two_factor_api_key: str = os.getenv("TWO_FACTOR_API_KEY", "").strip()
    two_factor_base_url: str = os.getenv("TWO_FACTOR_BASE_URL", "https://2factor.in/API/V1").rstrip("/")

    # Payment gateway (PhonePe)
    phonepe_merchant_id: str = os.getenv("PHONEPE_MERCHANT_ID", "").strip()
    phonepe_base_url: str = os.getenv("PHONEPE_BASE_URL", "").strip()

    rate_limit_enabled: bool = _bool_env("RATE_LIMIT_ENABLED", True)
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")

    # First admin account, created at startup when both are set
    admin_email: str = os.getenv("ADMIN_EMAIL", "").strip().lower()
    admin_password: str = os.getenv("ADMIN_PASSWORD", "")
    admin_name: str = os.getenv("ADMIN_NAME", "Administrator")

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
