import logging
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from extensions import db
from models import WithdrawalRequest
from schemas import WithdrawalCreateRequest, ReviewRequest
from mlm.wallet import WalletService
from mlm.withdrawals import request_withdrawal, review_withdrawal, pending_total
from blueprints.api_helpers import admin_required, parse_body, pagination


logger = logging.getLogger(__name__)

bp = Blueprint("wallet", __name__, url_prefix="/api")


# ==========================================================
#                  WALLET & LEDGER
# ==========================================================
@bp.route("/wallet", methods=["GET"])
@login_required
def wallet():
    wallet = WalletService.get_wallet(current_user.id)
    db.session.commit()
    result = wallet.to_dict()
    result["pendingWithdrawals"] = str(pending_total(current_user.id))
    return jsonify(result), 200


@bp.route("/transactions", methods=["GET"])
@login_required
def transactions():
    limit, offset = pagination()
    txns = WalletService.transactions_for(current_user.id, limit=limit, offset=offset)
    return jsonify([t.to_dict() for t in txns]), 200


# ==========================================================
#                  WITHDRAWALS
# ==========================================================
@bp.route("/withdrawals", methods=["POST"])
@login_required
def create_withdrawal():
    data = parse_body(WithdrawalCreateRequest)
    withdrawal = request_withdrawal(
        current_user,
        data.amount,
        withdrawal_type=data.withdrawal_type,
        bank_account_number=data.bank_account_number,
        bank_ifsc=data.bank_ifsc,
        bank_name=data.bank_name,
        upi_id=data.upi_id,
    )
    db.session.commit()
    return jsonify(withdrawal.to_dict()), 201


@bp.route("/withdrawals", methods=["GET"])
@login_required
def my_withdrawals():
    rows = (
        WithdrawalRequest.query.filter_by(user_id=current_user.id)
        .order_by(WithdrawalRequest.created_at.desc())
        .all()
    )
    return jsonify([w.to_dict() for w in rows]), 200


@bp.route("/admin/withdrawals", methods=["GET"])
@admin_required
def all_withdrawals():
    q = WithdrawalRequest.query
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)
    return jsonify([w.to_dict() for w in q.order_by(WithdrawalRequest.created_at.desc()).all()]), 200


@bp.route("/admin/withdrawals/<int:withdrawal_id>", methods=["PATCH"])
@admin_required
def review(withdrawal_id):
    data = parse_body(ReviewRequest)
    withdrawal = review_withdrawal(withdrawal_id, current_user, data.status, data.admin_notes)
    db.session.commit()
    return jsonify(withdrawal.to_dict()), 200
