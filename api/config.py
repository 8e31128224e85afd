"""
Environment-aware configuration.
Secrets, token lifetimes and hashing cost are all read from the environment
(.env is honoured) so every deployment can tune them without code changes.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-access-secret-change-me-0123456789"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-me-0123456789"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///store2door.db")
    SQL_ECHO = _env_bool("SQL_ECHO")

    # Access and refresh tokens are signed with independent secrets
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    REFRESH_SECRET = os.getenv("REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "store2door")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "store2door-client")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "604800")))
    REFRESH_TOKEN_RETENTION = int(os.getenv("REFRESH_TOKEN_RETENTION", "5"))

    # argon2 work factor; library defaults unless overridden
    ARGON2_TIME_COST = int(os.getenv("ARGON2_TIME_COST", "3"))
    ARGON2_MEMORY_COST = int(os.getenv("ARGON2_MEMORY_COST", "65536"))
    ARGON2_PARALLELISM = int(os.getenv("ARGON2_PARALLELISM", "4"))

    # Legacy clients expect a distinct message for disabled accounts
    EXPOSE_DEACTIVATED_LOGIN = _env_bool("EXPOSE_DEACTIVATED_LOGIN")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite:///:memory:"
    SQL_ECHO = False
    # Cheap hashes keep the suite fast
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 8
    ARGON2_PARALLELISM = 1
    EXPOSE_DEACTIVATED_LOGIN = False


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


def validate_config(config) -> None:
    """Refuse to run production with the development signing secrets."""
    if config.get("DEBUG") or config.get("TESTING"):
        return
    if config.get("JWT_SECRET") == DEV_JWT_SECRET or config.get("REFRESH_SECRET") == DEV_REFRESH_SECRET:
        raise RuntimeError("JWT_SECRET and REFRESH_SECRET must be set in production")
    if config.get("JWT_SECRET") == config.get("REFRESH_SECRET"):
        raise RuntimeError("JWT_SECRET and REFRESH_SECRET must differ")
