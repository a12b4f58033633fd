# backend/orderdesk/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/orderdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///orderdesk.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # bcrypt cost factor; tests lower it to keep hashing fast
    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    SESSION_ABSOLUTE_TIMEOUT_HOURS = _env_int("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24)
    SESSION_IDLE_TIMEOUT_HOURS = _env_int("SESSION_IDLE_TIMEOUT_HOURS", 2)

    CORS_ALLOWED_ORIGINS = _env_list(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    )

    # Flat shipping fees quoted on the order form (cents), keyed by shipping method
    SHIPPING_FEES_CENTS = {
        "standard": _env_int("SHIPPING_FEE_STANDARD_CENTS", 800),
        "express": _env_int("SHIPPING_FEE_EXPRESS_CENTS", 1500),
    }

    # Ship-from block stamped on every shipment
    SHIP_FROM = {
        "name": os.environ.get("SHIP_FROM_NAME", "Warehouse Team"),
        "company": os.environ.get("SHIP_FROM_COMPANY", "Your Company"),
        "address": os.environ.get("SHIP_FROM_ADDRESS", "123 Warehouse St"),
        "city": os.environ.get("SHIP_FROM_CITY", "Warehouse City"),
        "state": os.environ.get("SHIP_FROM_STATE", "CA"),
        "zip_code": os.environ.get("SHIP_FROM_ZIP", "90210"),
    }

    DEFAULT_PAYMENT_TERM = os.environ.get("DEFAULT_PAYMENT_TERM", "Net 30")
    DEFAULT_MIN_STOCK_LEVEL = _env_int("DEFAULT_MIN_STOCK_LEVEL", 10)
    RECENT_TRANSACTIONS_LIMIT = _env_int("RECENT_TRANSACTIONS_LIMIT", 20)
