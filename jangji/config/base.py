import os

from sqlalchemy.pool import StaticPool


def _flag(name, default="0"):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "sqlite:///jangji.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    APP_ID = os.environ.get("JANGJI_APP_ID", "jangji-app")
    SYNC_MERGE_BOOKMARKS = _flag("SYNC_MERGE_BOOKMARKS")
    MIN_PASSWORD_LENGTH = 6


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
