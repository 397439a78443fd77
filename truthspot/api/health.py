from datetime import datetime

from flask import Blueprint, jsonify

from truthspot.extensions import cache, pocketbase
from truthspot.services.pocketbase import PocketBaseError

bp = Blueprint('health', __name__, url_prefix='/health')


def _check_pocketbase():
    try:
        pocketbase.send("GET", "/api/health")
        return "healthy"
    except PocketBaseError as e:
        return f"unhealthy: {e.message}"


@bp.route('/')
def home():
    """Health check endpoint."""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0",
        "checks": {},
    }

    # PocketBase check
    health_status["checks"]["pocketbase"] = _check_pocketbase()
    if health_status["checks"]["pocketbase"] != "healthy":
        health_status["status"] = "unhealthy"

    # Cache check
    try:
        cache.set("health_check", "ok", timeout=10)
        cache_value = cache.get("health_check")
        if cache_value == "ok":
            health_status["checks"]["cache"] = "healthy"
        else:
            health_status["checks"]["cache"] = "unhealthy: cache not working"
            health_status["status"] = "unhealthy"
    except Exception as e:
        health_status["checks"]["cache"] = f"unhealthy: {str(e)}"
        health_status["status"] = "unhealthy"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return jsonify(health_status), status_code


@bp.route('/ready')
def readiness_check():
    """Readiness check endpoint."""
    status = _check_pocketbase()
    if status == "healthy":
        return jsonify({"status": "ready"}), 200
    return jsonify({"status": "not_ready", "error": status}), 503


@bp.route('/live')
def liveness_check():
    """Liveness check endpoint."""
    return jsonify({"status": "alive"}), 200
