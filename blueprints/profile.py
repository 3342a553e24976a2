from flask import Blueprint, jsonify
from flask_login import login_required, current_user
import logging
from extensions import db
from schemas import UpdateProfileRequest
from blueprints.api_helpers import parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@bp.route("", methods=["GET"])
@login_required
def get_profile():
    return jsonify(current_user.to_dict()), 200


@bp.route("", methods=["PATCH"])
@login_required
def update_profile():
    """Members edit their own name and mobile; role, status and tree fields stay admin-only."""
    data = parse_body(UpdateProfileRequest)

    changed = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(current_user, field, value)
            changed.append(field)
    db.session.commit()

    logger.info(f"User {current_user.id} updated profile fields {changed}")
    return jsonify(current_user.to_dict()), 200
