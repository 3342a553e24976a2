#======================================================================================
#
# FOUNDER TOOLS: hidden IDs and placement override
#
#=======================================================================================
from decimal import Decimal
import logging
from flask import Blueprint, jsonify
from flask_login import current_user
from sqlalchemy import func
from extensions import db
from models import User, UserStatus, Purchase, PurchaseStatus, RankAchievement
from schemas import HiddenIdRequest, PlacementOverrideRequest
from mlm.accounts import create_member, generate_password
from mlm.placement import place_user_at
from blueprints.api_helpers import founder_required, parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("founder", __name__, url_prefix="/api/founder")


@bp.route("/stats", methods=["GET"])
@founder_required
def founder_stats():
    revenue = db.session.query(func.coalesce(func.sum(Purchase.total_amount), 0)).filter(
        Purchase.status == PurchaseStatus.COMPLETED.value
    ).scalar()
    bonuses = db.session.query(func.coalesce(func.sum(RankAchievement.bonus_amount), 0)).scalar()
    return jsonify({
        "totalUsers": User.query.count(),
        "hiddenIds": User.query.filter_by(is_hidden=True).count(),
        "activeUsers": User.query.filter_by(status=UserStatus.ACTIVE.value).count(),
        "unplacedUsers": User.query.filter(User.parent_id.is_(None), User.id != current_user.id).count(),
        "totalRevenue": str(Decimal(str(revenue))),
        "rankBonusesPaid": str(Decimal(str(bonuses))),
    }), 200


@bp.route("/hidden-ids", methods=["GET"])
@founder_required
def hidden_ids():
    users = User.query.filter_by(is_hidden=True).order_by(User.created_at.desc()).all()
    return jsonify([u.to_dict() for u in users]), 200


@bp.route("/create-hidden-id", methods=["POST"])
@founder_required
def create_hidden_id():
    """A member that admin lists never show, placed at an exact slot."""
    data = parse_body(HiddenIdRequest)
    password = data.password or generate_password()

    user = create_member(
        email=data.email,
        password=password,
        first_name=data.first_name,
        last_name=data.last_name,
        status=UserStatus.ACTIVE.value,
        sponsor_id=current_user.id,
        is_hidden=True,
    )
    placement = place_user_at(user.id, data.parent_id, data.position, sponsor_id=current_user.id)
    db.session.commit()

    logger.info(f"Founder {current_user.id} created hidden id {user.id}")
    return jsonify({
        "user": user.to_dict(),
        "placement": placement.to_dict(),
        "loginCredentials": {"email": user.email, "password": password},
    }), 201


@bp.route("/placement-override", methods=["POST"])
@founder_required
def placement_override():
    """Place an existing unplaced user at an exact slot."""
    data = parse_body(PlacementOverrideRequest)
    placement = place_user_at(data.user_id, data.parent_id, data.position)
    db.session.commit()
    logger.info(f"Founder {current_user.id} placed user {data.user_id} at {data.parent_id}/{data.position}")
    return jsonify(placement.to_dict()), 200
