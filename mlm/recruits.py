from datetime import datetime, timezone
from decimal import Decimal
import logging
from extensions import db
from models import User, PendingRecruit, RecruitStatus, UplineDecision, UserStatus
from mlm.exceptions import (
    ConflictError, NotFoundError, PermissionDenied, RecruitWorkflowError, ValidationError,
)
from mlm.accounts import create_member, email_taken, generate_password, split_full_name
from mlm.placement import place_user, parse_side
from mlm.kyc import attach_staged_documents
from mlm.notifications import notify


logger = logging.getLogger(__name__)


class RecruitApproval:
    """Outcome of an admin approval; the caller emails the credentials after commit."""

    def __init__(self, user, password, placement):
        self.user = user
        self.password = password
        self.placement = placement


def _locked_recruit(recruit_id) -> PendingRecruit:
    recruit = (
        PendingRecruit.query.filter_by(id=recruit_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not recruit:
        raise NotFoundError("Pending recruit not found")
    return recruit


# ==========================================================
#                  SUBMISSION
# ==========================================================

def submit_recruit(recruiter: User, email, full_name, mobile=None,
                   package_amount=Decimal("0"), kyc_documents=None) -> PendingRecruit:
    """Open a recruit awaiting the upline. The upline is the recruiter's sponsor, else the recruiter."""
    email = email.strip().lower()
    if email_taken(email):
        raise ConflictError("A user with this email already exists")

    open_recruit = PendingRecruit.query.filter(
        db.func.lower(PendingRecruit.email) == email,
        PendingRecruit.status != RecruitStatus.REJECTED.value,
    ).first()
    if open_recruit:
        raise ConflictError("A recruit with this email is already pending")

    upline_id = recruiter.sponsor_id or recruiter.id
    recruit = PendingRecruit(
        email=email,
        full_name=full_name,
        mobile=mobile,
        recruiter_id=recruiter.id,
        upline_id=upline_id,
        package_amount=package_amount or Decimal("0"),
        status=RecruitStatus.AWAITING_UPLINE.value,
        upline_decision=UplineDecision.PENDING.value,
        kyc_documents=list(kyc_documents or []),
    )
    db.session.add(recruit)
    db.session.flush()

    if upline_id != recruiter.id:
        notify(
            upline_id,
            "recruit_pending",
            "New recruit awaiting your decision",
            f"{recruiter.full_name or recruiter.email} submitted {full_name} ({email}).",
            related_id=recruit.id,
        )
    logger.info(f"Recruit {recruit.id} ({email}) submitted by {recruiter.id}, upline {upline_id}")
    return recruit


# ==========================================================
#                  UPLINE DECISION
# ==========================================================

def record_upline_decision(recruit_id, upline: User, decision, position=None, reason=None) -> PendingRecruit:
    recruit = _locked_recruit(recruit_id)

    if recruit.upline_id != upline.id:
        raise PermissionDenied("Only the recruit's upline can decide on this recruit")
    if recruit.status != RecruitStatus.AWAITING_UPLINE.value:
        raise RecruitWorkflowError(f"Recruit is {recruit.status}; the upline decision has already been made")

    if decision == UplineDecision.APPROVED.value:
        if not position:
            raise ValidationError("A position is required to approve a recruit")
        side = parse_side(position)
        recruit.position = side.value
        recruit.upline_decision = UplineDecision.APPROVED.value
        recruit.upline_decision_at = datetime.now(timezone.utc)
        recruit.status = RecruitStatus.AWAITING_ADMIN.value
        notify(
            recruit.recruiter_id,
            "recruit_upline_approved",
            "Your recruit was approved by the upline",
            f"{recruit.full_name} will be placed on the {side.value} side after admin approval.",
            related_id=recruit.id,
        )
        logger.info(f"Recruit {recruit.id} approved by upline {upline.id} on {side.value}")
        return recruit

    if decision == UplineDecision.REJECTED.value:
        recruit.upline_decision = UplineDecision.REJECTED.value
        recruit.upline_decision_at = datetime.now(timezone.utc)
        return _reject(recruit, upline, reason or "Rejected by upline")

    raise ValidationError("Decision must be 'approved' or 'rejected'")


# ==========================================================
#                  ADMIN APPROVAL / REJECTION
# ==========================================================

def approve_recruit(recruit_id, admin: User, package_amount=None) -> RecruitApproval:
    """
    Create the member from the recruit, place them under the upline on the
    chosen side, attach the staged KYC documents and delete the recruit row.
    All inside the caller's transaction.
    """
    recruit = _locked_recruit(recruit_id)

    if recruit.status == RecruitStatus.REJECTED.value:
        raise RecruitWorkflowError("Recruit has been rejected")
    if recruit.status != RecruitStatus.AWAITING_ADMIN.value:
        raise RecruitWorkflowError("Recruit is still awaiting the upline's decision")
    if recruit.upline_decision != UplineDecision.APPROVED.value:
        raise RecruitWorkflowError("Recruit has not been approved by the upline")
    if not recruit.position:
        raise RecruitWorkflowError("Recruit has no placement position")
    if recruit.upline_id is None:
        raise RecruitWorkflowError("Recruit's upline no longer exists")

    first_name, last_name = split_full_name(recruit.full_name)
    password = generate_password()
    user = create_member(
        email=recruit.email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        mobile=recruit.mobile,
        status=UserStatus.ACTIVE.value,
        sponsor_id=recruit.recruiter_id,
        package_amount=package_amount if package_amount is not None else recruit.package_amount,
    )
    placement = place_user(user.id, recruit.upline_id, recruit.position, sponsor_id=recruit.recruiter_id)
    attach_staged_documents(user, recruit.kyc_documents)

    notify(
        recruit.recruiter_id,
        "recruit_approved",
        "Your recruit is now a member",
        f"{recruit.full_name} joined on the {recruit.position} side.",
        related_id=user.id,
    )

    logger.info(f"Recruit {recruit.id} approved by admin {admin.id}: user {user.id} under {placement.parent_id}")
    db.session.delete(recruit)
    db.session.flush()
    return RecruitApproval(user, password, placement)


def reject_recruit(recruit_id, actor: User, reason) -> PendingRecruit:
    recruit = _locked_recruit(recruit_id)
    if recruit.status == RecruitStatus.REJECTED.value:
        raise RecruitWorkflowError("Recruit has already been rejected")
    return _reject(recruit, actor, reason)


def _reject(recruit: PendingRecruit, actor: User, reason) -> PendingRecruit:
    if not (reason or "").strip():
        raise ValidationError("A rejection reason is required")

    recruit.status = RecruitStatus.REJECTED.value
    recruit.rejection_reason = reason
    recruit.rejected_by = actor.id
    recruit.rejected_at = datetime.now(timezone.utc)

    message = f"{recruit.full_name} ({recruit.email}) was rejected: {reason}"
    notify(recruit.recruiter_id, "recruit_rejected", "Recruit rejected", message, related_id=recruit.id)
    if recruit.upline_id and recruit.upline_id != recruit.recruiter_id and recruit.upline_id != actor.id:
        notify(recruit.upline_id, "recruit_rejected", "Recruit rejected", message, related_id=recruit.id)

    db.session.flush()
    logger.info(f"Recruit {recruit.id} rejected by {actor.id}: {reason}")
    return recruit


# ==========================================================
#                  QUERIES
# ==========================================================

def pending_for_upline(upline_id):
    return (
        PendingRecruit.query.filter_by(upline_id=upline_id, status=RecruitStatus.AWAITING_UPLINE.value)
        .order_by(PendingRecruit.created_at.asc())
        .all()
    )


def pending_for_admin():
    return (
        PendingRecruit.query.filter_by(status=RecruitStatus.AWAITING_ADMIN.value)
        .order_by(PendingRecruit.upline_decision_at.asc())
        .all()
    )


def recruits_by(recruiter_id):
    return (
        PendingRecruit.query.filter_by(recruiter_id=recruiter_id)
        .order_by(PendingRecruit.created_at.desc())
        .all()
    )
