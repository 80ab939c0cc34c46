"""Dashboard statistics for the current user's visible requests."""

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from ...aggregation import dashboard_summary
from ...security import filter_visible, has_full_visibility
from ...utils import delivered_status, now, workspace

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@dashboard_bp.route("/")
@login_required
def summary():
    ws = workspace()
    visible = filter_visible(ws.requests.rows, current_user)

    # Restricted users get their own sector only
    sectors = ws.sectors.rows
    if not has_full_visibility(current_user):
        sectors = [s for s in sectors if s.get("name") == current_user.sector]

    payload = dashboard_summary(visible, ws.statuses.rows, sectors, now(), delivered_status())
    payload["scope"] = "all" if has_full_visibility(current_user) else current_user.sector
    payload["connectionError"] = ws.status()["connectionError"]
    return jsonify(payload)
