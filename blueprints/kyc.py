import logging
from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from extensions import db
from models import KYCDocument
from schemas import KycDocumentPayload, KycReviewRequest
from mlm.kyc import submit_document, review_document, pending_documents, documents_for
from mlm.accounts import get_user_or_404
from mlm.exceptions import NotFoundError
from blueprints.api_helpers import admin_required, parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("kyc", __name__, url_prefix="/api")


@bp.route("/kyc", methods=["GET"])
@login_required
def my_kyc():
    return jsonify({
        "kycStatus": current_user.kyc_status,
        "documents": [d.to_dict() for d in documents_for(current_user.id)],
    }), 200


@bp.route("/kyc", methods=["POST", "PUT"])
@login_required
def upload_kyc():
    data = parse_body(KycDocumentPayload)
    doc = submit_document(current_user, data.model_dump())
    db.session.commit()
    return jsonify({"document": doc.to_dict(), "kycStatus": current_user.kyc_status}), 201


#===========================================================================
#      ADMIN REVIEW
#==============================================================================
@bp.route("/admin/kyc", methods=["GET"])
@admin_required
def pending_kyc():
    docs = pending_documents()
    users = {}
    result = []
    for doc in docs:
        user = users.get(doc.user_id) or get_user_or_404(doc.user_id)
        users[doc.user_id] = user
        entry = doc.to_dict()
        entry["user"] = {"id": user.id, "name": user.full_name, "email": user.email}
        result.append(entry)
    return jsonify(result), 200


@bp.route("/admin/kyc/<int:document_id>", methods=["PATCH"])
@admin_required
def review_kyc(document_id):
    data = parse_body(KycReviewRequest)
    doc = review_document(document_id, current_user, data.status, data.rejection_reason)
    db.session.commit()
    return jsonify(doc.to_dict()), 200


@bp.route("/admin/kyc/<int:user_id>/documents", methods=["GET"])
@admin_required
def user_kyc_documents(user_id):
    user = get_user_or_404(user_id)
    return jsonify({
        "userId": user.id,
        "kycStatus": user.kyc_status,
        "documents": [d.to_dict() for d in documents_for(user.id)],
    }), 200


@bp.route("/admin/kyc/document/<int:document_id>", methods=["GET"])
@admin_required
def kyc_document(document_id):
    doc = db.session.get(KYCDocument, document_id)
    if not doc:
        raise NotFoundError("KYC document not found")
    return jsonify(doc.to_dict(include_data=True)), 200
