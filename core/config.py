# ==================================================================================
# core/config.py — DeadlineGuard Configuration (SendGrid + Stripe + Pydantic v2)
# ==================================================================================
from typing import Dict, Optional
import logging
import sys

from pydantic import EmailStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./deadlineguard.db"

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Shared secret for scheduler-triggered job endpoints (unset = open)
    CRON_SECRET: Optional[str] = None

    # ------------------------
    # SENDGRID EMAIL CONFIG
    # ------------------------
    SENDGRID_API_KEY: Optional[str] = None
    MAIL_FROM: Optional[EmailStr] = None

    # ------------------------
    # FRONTEND CONFIG
    # ------------------------
    FRONTEND_URL: str = "http://localhost:5173"
    INVITATION_VALID_DAYS: int = 7

    # ------------------------
    # STRIPE / PAYMENT CONFIG
    # ------------------------
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRO_MONTHLY_PRICE_ID: Optional[str] = None
    STRIPE_PRO_YEARLY_PRICE_ID: Optional[str] = None
    STRIPE_TEAM_MONTHLY_PRICE_ID: Optional[str] = None
    STRIPE_TEAM_YEARLY_PRICE_ID: Optional[str] = None
    TRIAL_PERIOD_DAYS: int = 14

    @property
    def STRIPE_PRICE_IDS(self) -> Dict[str, str]:
        """Checkout price keys -> configured Stripe price ids (unset keys dropped)."""
        candidates = {
            "pro_monthly": self.STRIPE_PRO_MONTHLY_PRICE_ID,
            "pro_yearly": self.STRIPE_PRO_YEARLY_PRICE_ID,
            "team_monthly": self.STRIPE_TEAM_MONTHLY_PRICE_ID,
            "team_yearly": self.STRIPE_TEAM_YEARLY_PRICE_ID,
        }
        return {key: value for key, value in candidates.items() if value}

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
    logger.info("✅ Environment loaded (environment=%s, debug=%s)", settings.ENVIRONMENT, settings.DEBUG)
except ValidationError as e:
    logger.error("❌ Environment configuration error — missing or invalid settings:\n%s", e)
    sys.exit(1)
