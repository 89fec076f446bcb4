# backend/wholesale/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/wholesale.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///wholesale.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Compare the live database against the versioned schema contract at boot
    SCHEMA_CHECK_ON_STARTUP = _env_flag("SCHEMA_CHECK_ON_STARTUP", "true")

    MAX_VENDOR_NOTE_LENGTH = int(os.environ.get("MAX_VENDOR_NOTE_LENGTH", "500"))

    # Source tag stamped on orders created through the HTTP API
    ORDER_SOURCE_TAG = os.environ.get("ORDER_SOURCE_TAG", "api")
