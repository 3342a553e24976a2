from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from extensions import db
from models import Notification
from schemas import NotificationReadRequest
from mlm.notifications import unread_count, mark_read
from blueprints.api_helpers import pagination


bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@bp.route("", methods=["GET"])
@login_required
def list_notifications():
    limit, offset = pagination()
    q = Notification.query.filter_by(user_id=current_user.id)
    if request.args.get("unread") in ("1", "true"):
        q = q.filter_by(is_read=False)
    rows = q.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit).all()
    return jsonify({"notifications": [n.to_dict() for n in rows], "unread": unread_count(current_user.id)}), 200


@bp.route("/read", methods=["POST"])
@login_required
def read():
    data = NotificationReadRequest.model_validate(request.get_json(silent=True) or {})
    updated = mark_read(current_user.id, data.ids or None)
    db.session.commit()
    return jsonify({"updated": updated}), 200
