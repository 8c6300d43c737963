# backend/branchwise/routes/system.py
"""
System health endpoint.

Reports whether the Laravel back office answers, and how many sale
sessions this process holds.
"""

import time
from flask import Blueprint, current_app

from ..errors import ProviderError
from ..extensions import terminal
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_back_office_health() -> dict:
    """
    Ping the back office with a cheap read.

    A 404 on the active-shift endpoint still proves the API is reachable.
    """
    start_time = time.time()
    try:
        terminal.client.get_or_none("/api/shifts/active")
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
        }
    except ProviderError as e:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.warning("Back office health check failed: %s", e.message)
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": e.message,
            "provider_status": e.provider_status,
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: back office reachable
    - 503: back office unreachable or failing
    """
    back_office = check_back_office_health()
    healthy = back_office["status"] == "healthy"

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "back_office": back_office,
        },
        "sessions": len(terminal.sessions),
    }

    return response, 200 if healthy else 503
