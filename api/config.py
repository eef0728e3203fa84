"""
Environment-aware configuration.
Values come from the environment (.env is loaded if present); the app
factory turns the JWT_* and token expiry keys into an immutable TokenConfig.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-secret-change-me"
MIN_SECRET_LENGTH = 32


def _seconds(name: str, default: int) -> timedelta:
    return timedelta(seconds=int(os.getenv(name, str(default))))


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///user-auth.db")
    SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

    # Token settings
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("TOKEN_ISSUER", "user-auth-api")
    JWT_LEEWAY_SECONDS = int(os.getenv("JWT_LEEWAY_SECONDS", "0"))
    ACCESS_TOKEN_EXPIRES = _seconds("ACCESS_TOKEN_EXPIRES_SECONDS", 15 * 60)
    REFRESH_TOKEN_EXPIRES = _seconds("REFRESH_TOKEN_EXPIRES_SECONDS", 7 * 24 * 3600)

    # Password hashing (argon2). TIME_COST is the cost factor; raise it freely,
    # existing hashes keep verifying and are upgraded on next login.
    PASSWORD_HASH_TIME_COST = int(os.getenv("PASSWORD_HASH_TIME_COST", "3"))
    PASSWORD_HASH_MEMORY_COST = int(os.getenv("PASSWORD_HASH_MEMORY_COST", "65536"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    JWT_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
    JWT_ISSUER = "user-auth-api-test"
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    # Cheapest parameters argon2 accepts; keeps the suite fast
    PASSWORD_HASH_TIME_COST = 1
    PASSWORD_HASH_MEMORY_COST = 8


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def check_production_secret(config) -> None:
    """Refuse to run production with the dev placeholder or a short secret."""
    secret = config.get("JWT_SECRET") or ""
    if secret == DEV_JWT_SECRET or len(secret) < MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET must be set to a random value of at least {MIN_SECRET_LENGTH} characters in production"
        )
