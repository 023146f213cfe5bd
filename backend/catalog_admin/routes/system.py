# Overview: Health endpoint for the catalog database and image host configuration.

"""
GET /api/health

Two checks:
- database: counts products and admins (proves both tables answer)
- image_host: whether Cloudflare credentials are configured. Without them
  uploads still work but only as local previews, so the check reports
  "degraded" rather than "unhealthy".

Overall status is the worst check status; "unhealthy" answers 503.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db, get_image_host
from ..models import Admin, Product
from ..timestamps import now_z

system_bp = Blueprint("system", __name__, url_prefix="/api")

_SEVERITY = {"healthy": 0, "degraded": 1, "unhealthy": 2}


def check_database() -> dict:
    started = time.perf_counter()
    try:
        details = {
            "products": db.session.query(Product).count(),
            "admins": db.session.query(Admin).count(),
        }
        result = {"status": "healthy", "details": details}
    except SQLAlchemyError:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        result = {"status": "unhealthy", "error": "Database error"}
    result["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
    return result


def check_image_host() -> dict:
    if get_image_host().is_configured:
        return {"status": "healthy"}
    return {"status": "degraded", "warning": "Image host credentials are not configured"}


@system_bp.get("/health")
def health():
    checks = {
        "database": check_database(),
        "image_host": check_image_host(),
    }
    overall = max((check["status"] for check in checks.values()), key=_SEVERITY.__getitem__)

    return {
        "status": overall,
        "timestamp": now_z(),
        "checks": checks,
    }, 503 if overall == "unhealthy" else 200
