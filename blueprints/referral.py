import logging
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from extensions import db
from schemas import ReferralLinkRequest, ReferralRegistrationRequest
from mlm.referral_links import (
    generate_referral_link, validate_referral_link, complete_referral_registration, links_for,
)
from blueprints.api_helpers import parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("referral", __name__, url_prefix="/api/referral")


@bp.route("/generate", methods=["POST"])
@login_required
def generate():
    data = parse_body(ReferralLinkRequest)
    link = generate_referral_link(current_user, data.placement_side)
    db.session.commit()
    return jsonify(link.to_dict(current_app.config.get("APP_BASE_URL", ""))), 201


@bp.route("/links", methods=["GET"])
@login_required
def my_links():
    base_url = current_app.config.get("APP_BASE_URL", "")
    return jsonify([link.to_dict(base_url) for link in links_for(current_user.id)]), 200


@bp.route("/validate", methods=["GET"])
def validate():
    return jsonify(validate_referral_link(request.args.get("token"))), 200


@bp.route("/complete-registration", methods=["POST"])
def complete_registration():
    data = parse_body(ReferralRegistrationRequest)
    user, password, placement = complete_referral_registration(
        token=data.token,
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        mobile=data.mobile,
        password=data.password,
        kyc_documents=[doc.model_dump() for doc in data.kyc_documents],
    )
    db.session.commit()

    return jsonify({
        "message": "Registration complete. Your account is pending activation.",
        "user": user.to_dict(),
        "placement": placement.to_dict(),
        "loginCredentials": {"email": user.email, "password": password},
    }), 201
