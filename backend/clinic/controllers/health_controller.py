"""
Health controller - liveness endpoint for monitoring.
"""

import logging

from flask import Blueprint, current_app, jsonify

from clinic.core.limiter_config import limiter

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/health")


@health_bp.route("", methods=["GET"])
@limiter.exempt
def health_check():
    """
    Report that the process is up and serving requests.

    Returns:
        JSON response with:
        - status: always "healthy"
        - environment: FLASK_ENV of the running instance
        - version: GIT_SHA the instance was built from

    Note:
        - No authentication required (monitoring endpoint)
        - Does not touch the database; readiness is the orchestrator's concern
    """
    logger.debug("Health check", extra={"context": {"endpoint": "/api/health"}})
    return (
        jsonify(
            {
                "status": "healthy",
                "environment": current_app.config["ENV_NAME"],
                "version": current_app.config["GIT_SHA"],
            }
        ),
        200,
    )
