"""
Centralized configuration module for application-wide settings.

Values come from environment variables (optionally loaded from a .env file)
and are turned into a Flask config mapping by build_app_config(). Tests pass
overrides instead of touching the environment.
"""

import logging
import os
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Only load from .env when DATABASE_URL is not already defined by the environment
if not os.getenv("DATABASE_URL"):
    load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///./clinic.db"
WEAK_SECRETS = ("dev-secret-change-me", "dev-jwt-secret-change-me", "secret123")

_TRUTHY = ("true", "1", "yes")


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean environment variable ("true", "1", "yes" are truthy)."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(
            "Invalid integer in environment, using default",
            extra={"context": {"variable": name, "value": raw, "default": default}},
        )
        return default


# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from the TZ environment variable.

    Falls back to UTC when TZ is unset or invalid. Storage always keeps UTC;
    this zone is only used for calendar boundaries such as "today" on the
    dashboard.
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


APP_TZ = get_app_timezone()


# ===========================
# Flask application config
# ===========================


def build_app_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the Flask config mapping from the environment.

    Args:
        overrides: Values that win over anything read from the environment

    Returns:
        Dict suitable for app.config.update()
    """
    env = os.getenv("FLASK_ENV", "development")
    config: Dict[str, Any] = {
        "ENV_NAME": env,
        "IS_PRODUCTION": env == "production",
        "TESTING": env_flag("TESTING", False),
        "SECRET_KEY": os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me"),
        "DATABASE_URL": os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        "JWT_SECRET_KEY": os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-me"),
        "JWT_ALGORITHM": os.getenv("JWT_ALGORITHM", "HS256"),
        "STRIPE_SECRET_KEY": os.getenv("STRIPE_SECRET_KEY", ""),
        "PAYMENT_CURRENCY": os.getenv("PAYMENT_CURRENCY", "gbp"),
        "MAINTENANCE_DUE_SOON_DAYS": env_int("MAINTENANCE_DUE_SOON_DAYS", 7),
        "RATELIMIT_ENABLED": env_flag("RATELIMIT_ENABLED", True),
        "RATELIMIT_STORAGE_URI": os.getenv("LIMITER_STORAGE_URI", "memory://"),
        "METRICS_ENABLED": env_flag("METRICS_ENABLED", True),
        "SENTRY_DSN": os.getenv("SENTRY_DSN", ""),
        "GIT_SHA": os.getenv("GIT_SHA", "unknown"),
        "LOG_TO_FILE": env_flag("LOG_TO_FILE", False),
        "JSON_SORT_KEYS": False,
    }
    if overrides:
        config.update(overrides)
    return config


def validate_production_config(config: Dict[str, Any]) -> None:
    """Fail fast if a production deployment runs with weak secrets."""
    if not config.get("IS_PRODUCTION"):
        return

    for key in ("SECRET_KEY", "JWT_SECRET_KEY"):
        secret = config.get(key) or ""
        if secret in WEAK_SECRETS or len(secret) < 32:
            raise ValueError(
                f"Production deployment requires strong {key} (min 32 chars)."
            )

    if not config.get("STRIPE_SECRET_KEY"):
        logger.warning(
            "STRIPE_SECRET_KEY not set; payment intents will fail",
            extra={"context": {"environment": config.get("ENV_NAME")}},
        )


def log_config(config: Dict[str, Any]) -> None:
    """Log the non-secret parts of the active configuration."""
    logger.info(
        "Configuration loaded",
        extra={
            "context": {
                "environment": config.get("ENV_NAME"),
                "timezone": str(APP_TZ),
                "rate_limit_enabled": config.get("RATELIMIT_ENABLED"),
                "metrics_enabled": config.get("METRICS_ENABLED"),
                "stripe_configured": bool(config.get("STRIPE_SECRET_KEY")),
                "maintenance_due_soon_days": config.get("MAINTENANCE_DUE_SOON_DAYS"),
            }
        },
    )
