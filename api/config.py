"""
Environment-aware configuration.
Values come from the environment (and .env via python-dotenv). The auth keys
are frozen into an AuthSettings value at start-up and never re-read.
"""
import os
from dataclasses import dataclass, field
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-secret-change-me-please-0123456789"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///foley-bookkeeper.db")
    SQL_ECHO = _env_bool("SQL_ECHO")
    DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))

    # Auth: shared HMAC secret, issuer and token lifetimes
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ISSUER = os.getenv("JWT_ISSUER", "foley-bookkeeper")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", str(30 * 24 * 3600))))

    # Argon2id cost parameters for new hashes (existing hashes carry their own)
    ARGON2_TIME_COST = int(os.getenv("ARGON2_TIME_COST", "3"))
    ARGON2_MEMORY_COST = int(os.getenv("ARGON2_MEMORY_COST", "65536"))  # KiB
    ARGON2_PARALLELISM = int(os.getenv("ARGON2_PARALLELISM", "4"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite:///:memory:"
    DB_STATEMENT_TIMEOUT_MS = 0
    JWT_SECRET = "testing-secret-with-at-least-32-bytes!"
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)
    REFRESH_TOKEN_EXPIRES = timedelta(days=1)
    # cheap hashes keep the suite fast
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 8
    ARGON2_PARALLELISM = 1


class ProductionConfig(BaseConfig):
    DEBUG = False
    DATABASE_URL = os.getenv("DATABASE_URL")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


@dataclass(frozen=True)
class AuthSettings:
    """Auth configuration, immutable for the process lifetime."""

    secret: str = field(repr=False)
    issuer: str
    access_token_ttl: timedelta
    refresh_token_ttl: timedelta
    argon2_time_cost: int
    argon2_memory_cost: int
    argon2_parallelism: int

    @classmethod
    def from_mapping(cls, config) -> "AuthSettings":
        settings = cls(
            secret=config["JWT_SECRET"],
            issuer=config["JWT_ISSUER"],
            access_token_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_token_ttl=config["REFRESH_TOKEN_EXPIRES"],
            argon2_time_cost=config["ARGON2_TIME_COST"],
            argon2_memory_cost=config["ARGON2_MEMORY_COST"],
            argon2_parallelism=config["ARGON2_PARALLELISM"],
        )
        if not settings.secret:
            raise ValueError("JWT_SECRET must be set")
        if settings.access_token_ttl <= timedelta(0) or settings.refresh_token_ttl <= timedelta(0):
            raise ValueError("token lifetimes must be positive")
        return settings
