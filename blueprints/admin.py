#======================================================================================
#
# ADMIN: dashboard stats, recruit approvals, ledger maintenance
#
#=======================================================================================
from datetime import datetime, timezone
from decimal import Decimal
import logging
from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy import func
from extensions import db
from models import (
    User, UserStatus, Purchase, PurchaseStatus, WithdrawalRequest, ReviewStatus,
    KYCDocument, KycStatus, PendingRecruit, RecruitStatus, WalletBalance, TransactionType,
)
from schemas import ApproveRecruitRequest, RejectRecruitRequest, WalletAdjustmentRequest
from mlm.recruits import approve_recruit, reject_recruit, pending_for_admin
from mlm.wallet import WalletService
from mlm.volume import reconcile_bv, recompute_user_bv, calculate_user_bv
from mlm.emails import EmailService
from mlm.accounts import get_user_or_404
from blueprints.api_helpers import admin_required, parse_body


logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("/stats", methods=["GET"])
@admin_required
def admin_stats():
    today = datetime.now(timezone.utc).date()
    visible = User.query.filter(User.is_hidden.is_(False))

    revenue = db.session.query(func.coalesce(func.sum(Purchase.total_amount), 0)).filter(
        Purchase.status == PurchaseStatus.COMPLETED.value
    ).scalar()
    total_bv = db.session.query(func.coalesce(func.sum(Purchase.total_bv), 0)).filter(
        Purchase.status == PurchaseStatus.COMPLETED.value
    ).scalar()
    wallet_total = db.session.query(func.coalesce(func.sum(WalletBalance.balance), 0)).scalar()

    return jsonify({
        "totalUsers": visible.count(),
        "activeUsers": visible.filter(User.status == UserStatus.ACTIVE.value).count(),
        "pendingUsers": visible.filter(User.status == UserStatus.PENDING.value).count(),
        "newUsersToday": visible.filter(func.date(User.created_at) == today.isoformat()).count(),
        "pendingRecruits": PendingRecruit.query.filter(
            PendingRecruit.status != RecruitStatus.REJECTED.value
        ).count(),
        "pendingKYC": KYCDocument.query.filter_by(status=KycStatus.PENDING.value).count(),
        "pendingWithdrawals": WithdrawalRequest.query.filter_by(status=ReviewStatus.PENDING.value).count(),
        "pendingPurchases": Purchase.query.filter_by(status=PurchaseStatus.PENDING.value).count(),
        "totalRevenue": str(Decimal(str(revenue))),
        "totalBV": str(Decimal(str(total_bv))),
        "walletLiability": str(Decimal(str(wallet_total))),
    }), 200


#===========================================================================
#      PENDING RECRUITS
#==============================================================================
@admin_bp.route("/pending-recruits", methods=["GET"])
@admin_required
def list_pending_recruits():
    return jsonify([r.to_dict() for r in pending_for_admin()]), 200


@admin_bp.route("/pending-recruits/<int:recruit_id>/approve", methods=["POST"])
@admin_required
def approve_pending_recruit(recruit_id):
    data = ApproveRecruitRequest.model_validate(request.get_json(silent=True) or {})
    result = approve_recruit(recruit_id, current_user, package_amount=data.package_amount)
    db.session.commit()

    EmailService.send_login_credentials(result.user.email, result.user.full_name, result.password)
    return jsonify({
        "message": "Recruit approved",
        "user": result.user.to_dict(),
        "placement": result.placement.to_dict(),
    }), 201


@admin_bp.route("/pending-recruits/<int:recruit_id>", methods=["DELETE"])
@admin_required
def reject_pending_recruit(recruit_id):
    data = parse_body(RejectRecruitRequest)
    recruit = reject_recruit(recruit_id, current_user, data.reason)
    db.session.commit()
    return jsonify({"message": "Recruit rejected", "recruit": recruit.to_dict()}), 200


#===========================================================================
#      WALLET & BV MAINTENANCE
#==============================================================================
@admin_bp.route("/wallet/adjust", methods=["POST"])
@admin_required
def adjust_wallet():
    data = parse_body(WalletAdjustmentRequest)
    get_user_or_404(data.user_id)

    description = f"{data.description} (by admin {current_user.id})"
    if data.amount > 0:
        txn = WalletService.credit(data.user_id, data.amount, TransactionType.ADMIN_ADJUSTMENT, description)
    else:
        txn = WalletService.debit(data.user_id, -data.amount, TransactionType.ADMIN_ADJUSTMENT, description)
    db.session.commit()
    return jsonify(txn.to_dict()), 201


@admin_bp.route("/ledger/<int:user_id>/verify", methods=["GET"])
@admin_required
def verify_ledger(user_id):
    get_user_or_404(user_id)
    consistent, balance, ledger = WalletService.verify_ledger(user_id)
    return jsonify({"consistent": consistent, "balance": str(balance), "ledgerSum": str(ledger)}), 200


@admin_bp.route("/bv/<int:user_id>/audit", methods=["GET"])
@admin_required
def audit_bv(user_id):
    stored = calculate_user_bv(user_id)
    recomputed = recompute_user_bv(user_id)
    return jsonify({
        "stored": {k: str(v) for k, v in stored.items()},
        "recomputed": {k: str(v) for k, v in recomputed.items()},
        "consistent": stored == recomputed,
    }), 200


@admin_bp.route("/bv/reconcile", methods=["POST"])
@admin_required
def reconcile():
    fixed = reconcile_bv()
    db.session.commit()
    logger.info(f"Admin {current_user.id} reconciled BV counters ({fixed} fixed)")
    return jsonify({"usersFixed": fixed}), 200
