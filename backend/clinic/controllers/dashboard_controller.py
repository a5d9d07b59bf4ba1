from flask import Blueprint
from flask_login import login_required

from clinic.controllers.dependencies import get_storage
from clinic.core.api_utils import json_ok
from clinic.core.auth_decorators import current_actor_id
from clinic.core.limiter_config import READ_LIMIT, limiter
from clinic.services.dashboard_service import DashboardService

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.route("/stats", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def dashboard_stats():
    """Today's bookings, this month's revenue and active students."""
    return json_ok(DashboardService(get_storage()).stats(current_actor_id()))
