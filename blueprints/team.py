import logging
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from mlm.tree import get_binary_tree, get_downline, get_direct_recruits
from mlm.volume import bv_stats
from mlm.ranks import check_rank_eligibility, next_rank_progress, rank_history, rank_table
from mlm.exceptions import ValidationError
from blueprints.api_helpers import admin_required


logger = logging.getLogger(__name__)

bp = Blueprint("team", __name__, url_prefix="/api")


def _depth(default=3):
    try:
        return int(request.args.get("depth", default))
    except ValueError:
        raise ValidationError("depth must be an integer")


#===========================================================================
#      TREE VIEWS
#==============================================================================
@bp.route("/team/tree", methods=["GET"])
@login_required
def my_tree():
    return jsonify(get_binary_tree(current_user.id, _depth())), 200


@bp.route("/team/downline", methods=["GET"])
@login_required
def my_downline():
    max_depth = request.args.get("maxDepth")
    downline = get_downline(current_user.id, int(max_depth) if max_depth and max_depth.isdigit() else None)
    return jsonify({"count": len(downline), "members": downline}), 200


@bp.route("/team/direct-recruits", methods=["GET"])
@login_required
def my_direct_recruits():
    return jsonify(get_direct_recruits(current_user.id)), 200


@bp.route("/admin/users/<int:user_id>/tree", methods=["GET"])
@admin_required
def user_tree(user_id):
    return jsonify(get_binary_tree(user_id, _depth())), 200


#===========================================================================
#      BV & RANKS
#==============================================================================
@bp.route("/bv-stats", methods=["GET"])
@login_required
def my_bv_stats():
    return jsonify(bv_stats(current_user.id)), 200


@bp.route("/ranks", methods=["GET"])
def ranks():
    return jsonify(rank_table()), 200


@bp.route("/ranks/history", methods=["GET"])
@login_required
def my_rank_history():
    return jsonify([a.to_dict() for a in rank_history(current_user.id)]), 200


@bp.route("/ranks/eligibility", methods=["GET"])
@login_required
def my_rank_eligibility():
    return jsonify(check_rank_eligibility(current_user.id)), 200


@bp.route("/ranks/progress", methods=["GET"])
@login_required
def my_rank_progress():
    return jsonify(next_rank_progress(current_user.id)), 200
