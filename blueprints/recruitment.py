import logging
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from extensions import db
from schemas import RecruitRequest, UplineDecisionRequest
from mlm.recruits import submit_recruit, record_upline_decision, pending_for_upline, recruits_by
from mlm.placement import find_placement
from blueprints.api_helpers import parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("recruitment", __name__, url_prefix="/api")


#===========================================================================
#      RECRUITER
#==============================================================================
@bp.route("/recruitment/register", methods=["POST"])
@login_required
def register_recruit():
    data = parse_body(RecruitRequest)
    recruit = submit_recruit(
        current_user,
        email=data.email,
        full_name=data.full_name,
        mobile=data.mobile,
        package_amount=data.package_amount,
        kyc_documents=[doc.model_dump() for doc in data.kyc_documents],
    )
    db.session.commit()
    return jsonify({"message": "Recruit submitted for upline approval", "recruit": recruit.to_dict()}), 201


@bp.route("/recruitment/mine", methods=["GET"])
@login_required
def my_recruits():
    return jsonify([r.to_dict() for r in recruits_by(current_user.id)]), 200


#===========================================================================
#      UPLINE DECISIONS
#==============================================================================
@bp.route("/upline/pending-recruits", methods=["GET"])
@login_required
def upline_pending_recruits():
    return jsonify([r.to_dict() for r in pending_for_upline(current_user.id)]), 200


@bp.route("/upline/pending-recruits/<int:recruit_id>/decide", methods=["POST"])
@login_required
def decide_recruit(recruit_id):
    data = parse_body(UplineDecisionRequest)
    recruit = record_upline_decision(
        recruit_id, current_user, data.decision, position=data.position, reason=data.reason
    )
    db.session.commit()
    return jsonify({"message": f"Recruit {data.decision}", "recruit": recruit.to_dict()}), 200


@bp.route("/placement/preview", methods=["GET"])
@login_required
def placement_preview():
    """Where a recruit placed on `side` under the caller would land after spillover."""
    side = request.args.get("side", "")
    return jsonify(find_placement(current_user.id, side).to_dict()), 200
