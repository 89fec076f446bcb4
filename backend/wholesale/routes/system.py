# backend/wholesale/routes/system.py
"""
System health endpoint.

Reports database reachability and the schema contract the app booted with.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..services.schema_service import get_schema_contract
from wholesale.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Check database connectivity with a trivial query."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except SQLAlchemyError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_schema_health() -> dict:
    """
    Compare the live schema with the contract.

    Missing optional columns are "degraded": orders still work, metadata is
    not stored.
    """
    try:
        contract = get_schema_contract()
    except SQLAlchemyError:
        current_app.logger.exception("Schema health check failed")
        return {"status": "unhealthy", "error": "Schema inspection failed"}

    if not contract.ok:
        status = "unhealthy"
    elif contract.missing_optional:
        status = "degraded"
    else:
        status = "healthy"
    return {"status": status, "details": contract.to_dict()}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable or schema behind the application
    """
    start_time = time.time()

    database_health = check_database_health()
    schema_health = check_schema_health() if database_health["status"] == "healthy" else {
        "status": "unhealthy",
        "error": "Database unavailable",
    }

    all_checks = [database_health, schema_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "schema": schema_health,
        },
    }, http_status
