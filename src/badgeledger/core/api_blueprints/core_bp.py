"""
Core API Blueprint

Handles service-level endpoints: health and metrics.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Tuple

from flask import Blueprint, Response, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

core_bp = Blueprint("core", __name__)


@core_bp.route("/health", methods=["GET"])
def health_check() -> Tuple[Any, int]:
    """Liveness check."""
    return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}), 200


@core_bp.route("/metrics", methods=["GET"])
def prometheus_metrics() -> Response:
    """Prometheus exposition of issuance and redemption counters."""
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
