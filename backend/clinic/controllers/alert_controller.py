from flask import Blueprint, request
from flask_login import login_required

from clinic.controllers.dependencies import get_storage, query_flag
from clinic.core.api_utils import json_ok
from clinic.core.limiter_config import READ_LIMIT, WRITE_LIMIT, limiter
from clinic.services.alert_service import AlertService

alerts_bp = Blueprint("alerts", __name__, url_prefix="/api/alerts")


@alerts_bp.route("", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_alerts():
    """List alerts. Filters: alertType, severity, unreadOnly."""
    alerts = AlertService(get_storage()).list_alerts(
        alert_type=request.args.get("alertType"),
        severity=request.args.get("severity"),
        unread_only=query_flag("unreadOnly"),
    )
    return json_ok(alerts)


@alerts_bp.route("/<alert_id>/read", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def mark_alert_read(alert_id):
    return json_ok(AlertService(get_storage()).mark_read(alert_id))


@alerts_bp.route("/<alert_id>/dismiss", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def dismiss_alert(alert_id):
    return json_ok(AlertService(get_storage()).dismiss(alert_id))
