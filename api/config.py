"""
Environment-aware configuration.
Values are read from the environment (and .env) once, when the config class is
imported. Request handling code reads them from app.config or from the
JWTSettings built in create_app(), never from os.environ.
"""
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()  # Read .env if present


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    APP_NAME = os.getenv("APP_NAME", "School Admin API")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///school-admin.db")
    SQLALCHEMY_ECHO = _env_flag("SQLALCHEMY_ECHO")

    # Access and refresh tokens are signed with different secrets
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "15m")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me")
    JWT_REFRESH_EXPIRES_IN = os.getenv("JWT_REFRESH_EXPIRES_IN", "30d")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "school-admin-api")

    # Flask-Limiter: global default per client IP, stricter on login
    RATE_LIMIT_ENABLED = _env_flag("RATE_LIMIT_ENABLED", "true")
    RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "200/minute")
    RATE_LIMIT_LOGIN = os.getenv("RATE_LIMIT_LOGIN", "10/minute")
    RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    DATABASE_URL = "sqlite://"
    JWT_SECRET = "test-secret"
    JWT_REFRESH_SECRET = "test-refresh-secret"


class ProductionConfig(BaseConfig):
    DEBUG = False


@dataclass(frozen=True)
class JWTSettings:
    """Token secrets and lifetimes, built once per application."""

    secret: str
    expires_in: str
    refresh_secret: str
    refresh_expires_in: str
    algorithm: str = "HS256"
    issuer: str = "school-admin-api"

    @classmethod
    def from_mapping(cls, config) -> "JWTSettings":
        return cls(
            secret=config["JWT_SECRET"],
            expires_in=config["JWT_EXPIRES_IN"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            refresh_expires_in=config.get("JWT_REFRESH_EXPIRES_IN") or "30d",
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "school-admin-api"),
        )


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
