#======================================================================================
#
# FRANCHISE REQUESTS & SUPPORT TICKETS
#
#=======================================================================================
from datetime import datetime, timezone
import logging
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from extensions import db
from models import FranchiseRequest, SupportTicket, ReviewStatus, TicketStatus
from schemas import FranchiseCreateRequest, SupportTicketCreateRequest, ReviewRequest, TicketUpdateRequest
from mlm.workflows import ensure_transition
from mlm.notifications import notify
from mlm.exceptions import NotFoundError, PermissionDenied
from blueprints.api_helpers import admin_required, parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("service_requests", __name__, url_prefix="/api")


def _filtered(q, model):
    status = request.args.get("status")
    if status:
        q = q.filter(model.status == status)
    return q.order_by(model.created_at.desc()).all()


# ==========================================================
#                  FRANCHISE
# ==========================================================
@bp.route("/franchise-requests", methods=["POST"])
@login_required
def create_franchise_request():
    data = parse_body(FranchiseCreateRequest)
    franchise = FranchiseRequest(user_id=current_user.id, status=ReviewStatus.PENDING.value, **data.model_dump())
    db.session.add(franchise)
    db.session.commit()
    logger.info(f"Franchise request {franchise.id} opened by user {current_user.id}")
    return jsonify(franchise.to_dict()), 201


@bp.route("/franchise-requests", methods=["GET"])
@login_required
def my_franchise_requests():
    return jsonify([f.to_dict() for f in _filtered(FranchiseRequest.query.filter_by(user_id=current_user.id),
                                                   FranchiseRequest)]), 200


@bp.route("/admin/franchise-requests", methods=["GET"])
@admin_required
def all_franchise_requests():
    return jsonify([f.to_dict() for f in _filtered(FranchiseRequest.query, FranchiseRequest)]), 200


@bp.route("/admin/franchise-requests/<int:request_id>", methods=["PATCH"])
@admin_required
def review_franchise_request(request_id):
    data = parse_body(ReviewRequest)
    franchise = db.session.get(FranchiseRequest, request_id)
    if not franchise:
        raise NotFoundError("Franchise request not found")

    franchise.status = ensure_transition("franchise", franchise.status, data.status)
    franchise.admin_notes = data.admin_notes
    franchise.reviewed_by = current_user.id
    franchise.reviewed_at = datetime.now(timezone.utc)
    notify(franchise.user_id, f"franchise_{data.status}", f"Franchise request {data.status}",
           data.admin_notes, related_id=franchise.id)
    db.session.commit()
    return jsonify(franchise.to_dict()), 200


# ==========================================================
#                  SUPPORT TICKETS
# ==========================================================
@bp.route("/support-tickets", methods=["POST"])
@login_required
def create_ticket():
    data = parse_body(SupportTicketCreateRequest)
    ticket = SupportTicket(user_id=current_user.id, status=TicketStatus.OPEN.value, **data.model_dump())
    db.session.add(ticket)
    db.session.commit()
    logger.info(f"Support ticket {ticket.id} opened by user {current_user.id}")
    return jsonify(ticket.to_dict()), 201


@bp.route("/support-tickets", methods=["GET"])
@login_required
def my_tickets():
    return jsonify([t.to_dict() for t in _filtered(SupportTicket.query.filter_by(user_id=current_user.id),
                                                   SupportTicket)]), 200


@bp.route("/support-tickets/<int:ticket_id>", methods=["GET"])
@login_required
def get_ticket(ticket_id):
    ticket = db.session.get(SupportTicket, ticket_id)
    if not ticket:
        raise NotFoundError("Support ticket not found")
    if ticket.user_id != current_user.id and not current_user.is_admin and not current_user.is_founder:
        raise PermissionDenied("Not your ticket")
    return jsonify(ticket.to_dict()), 200


@bp.route("/admin/support-tickets", methods=["GET"])
@admin_required
def all_tickets():
    return jsonify([t.to_dict() for t in _filtered(SupportTicket.query, SupportTicket)]), 200


@bp.route("/admin/support-tickets/<int:ticket_id>", methods=["PATCH"])
@admin_required
def update_ticket(ticket_id):
    data = parse_body(TicketUpdateRequest)
    ticket = db.session.get(SupportTicket, ticket_id)
    if not ticket:
        raise NotFoundError("Support ticket not found")

    ticket.status = ensure_transition("support_ticket", ticket.status, data.status)
    if data.resolution is not None:
        ticket.resolution = data.resolution
    notify(ticket.user_id, "ticket_updated", f"Ticket '{ticket.subject}' is now {data.status}",
           data.resolution, related_id=ticket.id)
    db.session.commit()
    return jsonify(ticket.to_dict()), 200
