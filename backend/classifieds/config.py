# backend/classifieds/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/classifieds.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location (e.g. postgresql://...)
        "sqlite:///classifieds.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bcrypt cost factor; tests lower it to keep hashing fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Comma-separated list of frontend origins allowed by CORS
    FRONTEND_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "FRONTEND_ORIGIN",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    # Static bank details shown to sellers paying for an ad package
    PAYMENT_BANK_NAME = os.environ.get("ADMIN_BANK_NAME", "Your Bank Name")
    PAYMENT_ACCOUNT_NUMBER = os.environ.get("ADMIN_ACCOUNT_NUMBER", "1234567890")
    PAYMENT_ACCOUNT_TITLE = os.environ.get("ADMIN_ACCOUNT_TITLE", "Your Account Title")

    # New sellers start as "pending" until an admin approves them
    SELLER_APPROVAL_REQUIRED = _env_flag("SELLER_APPROVAL_REQUIRED")

    # Package tiers: price in account currency, listing lifetime once approved
    AD_PACKAGES = {
        "Free": {"price": 0, "duration_days": 7},
        "Standard": {"price": 500, "duration_days": 15},
        "Premium": {"price": 1000, "duration_days": 30},
    }
