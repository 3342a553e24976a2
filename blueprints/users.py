#======================================================================================
#
# ADMIN USER MANAGEMENT
#
#=======================================================================================
from datetime import timedelta
from decimal import Decimal, InvalidOperation
import logging
from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from sqlalchemy import or_
from extensions import db
from models import User, UserStatus, EmailTokenType, PendingRecruit, ReferralLink
from schemas import CreateUserRequest, UpdateUserRequest, CreateUserWithPlacementRequest
from mlm.accounts import create_member, generate_password, issue_email_token, get_user_or_404
from mlm.placement import place_user_at, available_positions
from mlm.ranks import RANK_NAMES
from mlm.volume import detach_subtree_bv
from mlm.emails import EmailService
from mlm.exceptions import ConflictError, ValidationError, PermissionDenied
from blueprints.api_helpers import admin_required, parse_body, pagination, can_see_hidden


logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__, url_prefix="/api")


def _visible_users():
    q = User.query
    if not can_see_hidden():
        q = q.filter(User.is_hidden.is_(False))
    return q


@bp.route("/users", methods=["GET"])
@admin_required
def list_users():
    limit, offset = pagination()
    q = _visible_users()

    role = request.args.get("role")
    status = request.args.get("status")
    term = (request.args.get("q") or "").strip()
    if role:
        q = q.filter(User.role == role)
    if status:
        q = q.filter(User.status == status)
    if term:
        like = f"%{term}%"
        q = q.filter(or_(User.email.ilike(like), User.first_name.ilike(like), User.last_name.ilike(like)))

    total = q.count()
    users = q.order_by(User.created_at.desc()).offset(offset).limit(limit).all()
    return jsonify({"users": [u.to_dict() for u in users], "total": total}), 200


@bp.route("/users/search", methods=["GET"])
@admin_required
def search_users():
    """searchType: id | name | bv | rank"""
    search_type = request.args.get("searchType", "name")
    term = (request.args.get("q") or "").strip()
    if not term:
        raise ValidationError("Search term is required")

    q = _visible_users()
    if search_type == "id":
        if not term.isdigit():
            raise ValidationError("User id must be numeric")
        q = q.filter(User.id == int(term))
    elif search_type == "name":
        like = f"%{term}%"
        q = q.filter(or_(User.first_name.ilike(like), User.last_name.ilike(like), User.email.ilike(like)))
    elif search_type == "bv":
        try:
            q = q.filter(User.total_bv >= Decimal(term))
        except InvalidOperation:
            raise ValidationError("BV must be a number")
    elif search_type == "rank":
        matches = [name for name in RANK_NAMES if name.lower() == term.lower()]
        if not matches:
            raise ValidationError(f"Unknown rank: {term}")
        q = q.filter(User.current_rank == matches[0])
    else:
        raise ValidationError("searchType must be one of id, name, bv, rank")

    users = q.order_by(User.id).limit(100).all()
    return jsonify([u.to_dict() for u in users]), 200


@bp.route("/users/<int:user_id>", methods=["GET"])
@admin_required
def get_user(user_id):
    user = get_user_or_404(user_id)
    if user.is_hidden and not can_see_hidden():
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict()), 200


@bp.route("/users", methods=["POST"])
@admin_required
def create_user():
    """Create a pending user and email an invitation to set a password."""
    data = parse_body(CreateUserRequest)
    user = create_member(
        email=data.email,
        password=generate_password(16),
        first_name=data.first_name,
        last_name=data.last_name,
        mobile=data.mobile,
        role=data.role,
        status=UserStatus.PENDING.value,
        sponsor_id=data.sponsor_id,
        package_amount=data.package_amount,
        email_verified=False,
    )
    ttl = timedelta(hours=current_app.config.get("INVITATION_TTL_HOURS", 24))
    token = issue_email_token(user.email, EmailTokenType.INVITATION, ttl)
    db.session.commit()

    EmailService.send_invitation(user.email, user.full_name, token.token)
    logger.info(f"Admin {current_user.id} invited user {user.id}")
    return jsonify(user.to_dict()), 201


@bp.route("/users/<int:user_id>", methods=["PATCH", "PUT"])
@admin_required
def update_user(user_id):
    user = get_user_or_404(user_id)
    data = parse_body(UpdateUserRequest)
    if data.role is not None and user.is_founder and not current_user.is_founder:
        raise PermissionDenied("Only a founder can change a founder's role")

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    db.session.commit()

    logger.info(f"Admin {current_user.id} updated user {user.id}")
    return jsonify(user.to_dict()), 200


@bp.route("/users/<int:user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    user = get_user_or_404(user_id)
    if user.id == current_user.id:
        raise ConflictError("You cannot delete your own account")
    if user.left_child_id or user.right_child_id:
        raise ConflictError("User has downline members and cannot be deleted")

    # the counters up the chain must lose this user's BV along with their purchases
    detach_subtree_bv(user)

    # detach from the parent's slot before the row goes
    if user.parent_id:
        parent = db.session.get(User, user.parent_id)
        if parent is not None:
            if parent.left_child_id == user.id:
                parent.left_child_id = None
            if parent.right_child_id == user.id:
                parent.right_child_id = None
    User.query.filter_by(sponsor_id=user.id).update({User.sponsor_id: None}, synchronize_session=False)
    PendingRecruit.query.filter_by(upline_id=user.id).update({PendingRecruit.upline_id: None}, synchronize_session=False)
    ReferralLink.query.filter_by(used_by=user.id).update({ReferralLink.used_by: None}, synchronize_session=False)
    db.session.flush()

    db.session.delete(user)
    db.session.commit()
    logger.info(f"Admin {current_user.id} deleted user {user_id}")
    return jsonify({"message": "User deleted"}), 200


#===========================================================================
#      PLACEMENT BY ADMIN
#==============================================================================
@bp.route("/admin/users-for-placement", methods=["GET"])
@admin_required
def users_for_placement():
    """Users with at least one free slot, for the placement picker."""
    users = (
        _visible_users()
        .filter(or_(User.left_child_id.is_(None), User.right_child_id.is_(None)))
        .filter(User.status != UserStatus.INACTIVE.value)
        .order_by(User.level, User.id)
        .limit(500)
        .all()
    )
    return jsonify([
        {
            "id": u.id,
            "name": u.full_name,
            "email": u.email,
            "level": u.level,
            "availablePositions": available_positions(u),
        }
        for u in users
    ]), 200


@bp.route("/admin/users/create-with-placement", methods=["POST"])
@admin_required
def create_with_placement():
    data = parse_body(CreateUserWithPlacementRequest)
    password = data.password or generate_password()

    user = create_member(
        email=data.email,
        password=password,
        first_name=data.first_name,
        last_name=data.last_name,
        mobile=data.mobile,
        status=UserStatus.ACTIVE.value,
        sponsor_id=data.sponsor_id,
        package_amount=data.package_amount,
    )
    placement = place_user_at(user.id, data.parent_id, data.position, sponsor_id=data.sponsor_id)
    db.session.commit()

    if not data.password:
        EmailService.send_login_credentials(user.email, user.full_name, password)
    logger.info(f"Admin {current_user.id} created user {user.id} at {placement.parent_id}/{placement.position}")
    return jsonify({"user": user.to_dict(), "placement": placement.to_dict()}), 201
