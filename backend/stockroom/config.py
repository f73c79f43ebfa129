# backend/stockroom/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///stockroom.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Appended to every secret before hashing. Rotating it invalidates all
    # stored digests, so it is read once at startup and never hardcoded.
    PEPPER = os.environ.get("PEPPER", "")
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

    # Attempts for max+1 id allocation before surfacing a conflict
    ID_ALLOCATION_ATTEMPTS = 3

    # "discard": reverting a received order drops receipt data (logged).
    # "reject": refuse to revert orders that carry receipt data.
    ORDER_REVERT_POLICY = os.environ.get("ORDER_REVERT_POLICY", "discard")

    DEFAULT_PAGE_LIMIT = 50
    MAX_PAGE_LIMIT = 500

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
