import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")

DEV_JWT_SECRET = "dev-secret-key-DO-NOT-USE-IN-PRODUCTION"
DEV_REDIS_URL = "redis://localhost:6379/0"
MIN_SECRET_LENGTH = 32


class Config:
    APP_ENV = os.getenv("APP_ENV", "development")
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING" if APP_ENV == "production" else "INFO")

    # Tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM = "HS256"
    RESERVATION_TOKEN_EXPIRES = timedelta(days=30)
    LEGACY_TOKEN_EXPIRES = timedelta(
        days=int(os.getenv("JWT_LEGACY_EXPIRES_DAYS", "7"))
    )

    # Backing store
    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))

    # Reservations
    RESERVATION_MIN_LEAD = timedelta(hours=1)
    LEDGER_GRACE_PERIOD = timedelta(days=30)
    LEDGER_MIN_TTL_SECONDS = 60
    REVEAL_ID_LENGTH = 8
    REVEAL_ID_MAX_ATTEMPTS = 3

    # action-class -> (max requests, window seconds)
    RATE_LIMITS = {
        "create": (5, 60),
        "vote": (10, 60),
        "feedback": (5, 60 * 60),
    }

    # Mail (SMTP), used for feedback notifications
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() == "true"
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "false").lower() == "true"
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", MAIL_USERNAME)
    FEEDBACK_RECIPIENT = os.getenv("FEEDBACK_RECIPIENT")

    SWAGGER = {"title": "Reveal Day API", "uiversion": 3}


def validate_config(app) -> None:
    """
    Check the settings the service cannot run without.
    Fatal in production; in any other environment problems are logged and
    development fallbacks are filled in.
    """
    is_production = app.config.get("APP_ENV") == "production"
    errors = []

    secret = app.config.get("JWT_SECRET_KEY")
    if not secret:
        if is_production:
            errors.append("JWT_SECRET_KEY is not set")
        else:
            app.logger.warning("JWT_SECRET_KEY is not set; using the development secret")
            app.config["JWT_SECRET_KEY"] = DEV_JWT_SECRET
    elif len(secret) < MIN_SECRET_LENGTH:
        if is_production:
            errors.append(f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters")
        else:
            app.logger.warning("JWT_SECRET_KEY is shorter than %s characters", MIN_SECRET_LENGTH)

    if not app.config.get("REDIS_URL"):
        if is_production:
            errors.append("REDIS_URL is not set")
        else:
            app.logger.warning("REDIS_URL is not set; falling back to %s", DEV_REDIS_URL)
            app.config["REDIS_URL"] = DEV_REDIS_URL

    if errors:
        for message in errors:
            app.logger.critical("Configuration error: %s", message)
        raise RuntimeError("Invalid configuration: " + "; ".join(errors))
