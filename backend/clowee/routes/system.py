# backend/clowee/routes/system.py
"""
System health endpoint.

Reports database reachability with latency and the latest timings recorded
by the performance monitor.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import Machine, User
from ..monitoring import get_monitor
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with two cheap counts.
    """
    start_time = time.time()
    try:
        machine_count = db.session.query(Machine).count()
        user_count = db.session.query(User).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"machines": machine_count, "users": user_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    payload = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
        "performance": get_monitor(current_app).get_metrics(),
    }
    return jsonify(payload), 200 if healthy else 503
