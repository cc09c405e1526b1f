"""Application configuration with security-first defaults.

Environment variables override all defaults.
CRITICAL: SECRET_KEY must be set in .env - will fail fast if missing in production.
"""

import os
import warnings
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./medportal.db")

    # JWT Security - CRITICAL
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        # Generate with: python -c "import secrets; print(secrets.token_urlsafe(32))"
        if ENVIRONMENT == "production":
            raise ValueError(
                "CRITICAL: SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to a strong random value before deploying.",
            RuntimeWarning,
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    # Checkout links are emailed to patients, so they live much longer than a session
    CHECKOUT_TOKEN_EXPIRE_HOURS: int = int(os.getenv("CHECKOUT_TOKEN_EXPIRE_HOURS", "24"))
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Comma separated; these accounts are promoted to ADMIN on login
    ADMIN_EMAILS: List[str] = [e.lower() for e in _csv(os.getenv("ADMIN_EMAILS", ""))]

    # CORS (Restrictive - specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )
    ALLOWED_HOSTS: List[str] = _csv(
        os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,localhost:3001,127.0.0.1:3001")
    )

    # Stripe (Must be set via .env, never in code)
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_API_VERSION: str = "2023-10-16"
    PAYMENT_CURRENCY: str = "usd"

    # Email
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASS: str = os.getenv("SMTP_PASS", "")
    SENDGRID_API_KEY: str = os.getenv("SMTP_API", "") or os.getenv("SENDGRID_API_KEY", "")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "") or os.getenv("SMTP_USER", "")

    # SMS (Twilio)
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    TWILIO_MESSAGING_SERVICE_SID: str = os.getenv("TWILIO_MESSAGING_SERVICE_SID", "")
    TWILIO_STATUS_WEBHOOK_URL: str = os.getenv("TWILIO_STATUS_WEBHOOK_URL", "")

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # Inventory monitor
    LOW_STOCK_SCAN_INTERVAL_SECONDS: int = int(os.getenv("LOW_STOCK_SCAN_INTERVAL_SECONDS", "3600"))
    LOW_STOCK_ALERT_RECIPIENTS: List[str] = _csv(
        os.getenv("LOW_STOCK_ALERT_RECIPIENTS", "admin@medportal.com,inventory@medportal.com")
    )

    MIN_PASSWORD_LENGTH: int = 6

    # Security Features
    SECURE_COOKIES: bool = ENVIRONMENT == "production"


settings = Settings()
