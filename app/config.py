"""
Environment-driven settings. `.env` is loaded first; real environment
variables win. Secrets are read here and nowhere else.
"""

import os

from dotenv import load_dotenv

from app.utils.db import database_url_from_env

REQUIRED_SECRETS = ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET")


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def load_config() -> dict:
    load_dotenv(dotenv_path=".env")
    return {
        "DATABASE_URL": database_url_from_env(),
        "DB_CONNECT_TIMEOUT": _int("DB_CONNECT_TIMEOUT", 5),
        "DB_STATEMENT_TIMEOUT_MS": _int("DB_STATEMENT_TIMEOUT_MS", 5000),
        "STRIPE_SECRET_KEY": os.getenv("STRIPE_SECRET_KEY", "").strip(),
        "STRIPE_WEBHOOK_SECRET": os.getenv("STRIPE_WEBHOOK_SECRET", "").strip(),
        "STRIPE_WEBHOOK_TOLERANCE": _int("STRIPE_WEBHOOK_TOLERANCE", 300),
        "STRIPE_TIMEOUT_SECONDS": _float("STRIPE_TIMEOUT_SECONDS", 10.0),
        "STRIPE_CURRENCY": os.getenv("STRIPE_CURRENCY", "usd").lower(),
        "PROFILE_DIRECTORY_URL": os.getenv("PROFILE_DIRECTORY_URL", "").strip(),
        "PROFILE_DIRECTORY_TIMEOUT": _float("PROFILE_DIRECTORY_TIMEOUT", 3.0),
        "REDIS_URL": os.getenv("REDIS_URL", "").strip(),
        "LEDGER_CACHE_TTL": _int("LEDGER_CACHE_TTL", 60),
        "JWT_SECRET_KEY": os.getenv("JWT_SECRET", ""),
        "SOCKETIO_ASYNC_MODE": os.getenv("SOCKETIO_ASYNC_MODE", "threading"),
    }


def check_secrets(config: dict) -> None:
    missing = [k for k in REQUIRED_SECRETS if not config.get(k)]
    if missing:
        raise RuntimeError(f"missing required configuration: {', '.join(missing)}")
    # stripe skips the staleness check entirely for a zero tolerance
    if int(config.get("STRIPE_WEBHOOK_TOLERANCE") or 0) <= 0:
        raise RuntimeError("STRIPE_WEBHOOK_TOLERANCE must be a positive number of seconds")
