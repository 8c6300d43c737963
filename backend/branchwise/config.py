# backend/branchwise/config.py
from __future__ import annotations
import os


def _env_int(name: str) -> int | None:
    value = os.environ.get(name)
    return int(value) if value else None


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Laravel back office the terminal is a client of
    POS_API_URL = os.environ.get("POS_API_URL", "http://127.0.0.1:8000")
    POS_API_TOKEN = os.environ.get("POS_API_TOKEN")
    POS_API_TIMEOUT = float(os.environ.get("POS_API_TIMEOUT", "30"))
    # Test hook: an httpx transport (e.g. httpx.MockTransport) used instead of the network
    POS_API_TRANSPORT = None

    # Default terminal identity when the UI does not send X-User-Id / X-Branch-Id
    POS_BRANCH_ID = _env_int("POS_BRANCH_ID")
    POS_USER_ID = _env_int("POS_USER_ID")

    # Some branches insist on a due date for every credit sale
    CREDIT_REQUIRES_DUE_DATE = os.environ.get("CREDIT_REQUIRES_DUE_DATE", "false").lower() == "true"

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]
