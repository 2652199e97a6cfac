"""Health check blueprint."""

from __future__ import annotations

from flask import Blueprint, jsonify

from web.context import get_services

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health_check():
    services = get_services()
    data = {
        "status": "ok",
        "db_pool_size": services.pool.size,
        "db_pool_available": services.pool.available,
        "pending_notifications": services.dispatcher.pending,
        "current_week": services.calendar.current_week(),
    }
    return jsonify(data)
