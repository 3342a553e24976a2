from datetime import datetime, timezone
from typing import List, Optional
import logging
from sqlalchemy.exc import IntegrityError
from extensions import db
from models import User, KYCDocument, KycStatus, KycDocumentType
from mlm.exceptions import ValidationError, NotFoundError, ConflictError


logger = logging.getLogger(__name__)

REQUIRED_DOCUMENT_TYPES = [t.value for t in KycDocumentType]

# base64 payloads above this are refused; larger files belong behind a URL
MAX_INLINE_DOCUMENT_BYTES = 5 * 1024 * 1024


def _document_type(value) -> str:
    try:
        return KycDocumentType(value).value
    except ValueError:
        raise ValidationError(
            f"Invalid document type: {value}. Expected one of {', '.join(REQUIRED_DOCUMENT_TYPES)}"
        )


def _apply_content(doc: KYCDocument, data: dict):
    url = data.get("document_url")
    inline = data.get("document_data")
    if bool(url) == bool(inline):
        raise ValidationError("Provide exactly one of documentUrl or documentData")

    if inline and len(inline) * 3 // 4 > MAX_INLINE_DOCUMENT_BYTES:
        raise ValidationError("Inline document is too large")

    doc.document_url = url or None
    doc.document_data = inline or None
    doc.document_content_type = data.get("document_content_type")
    doc.document_filename = data.get("document_filename")
    doc.document_size = data.get("document_size")
    if data.get("document_number") is not None:
        doc.document_number = data.get("document_number")


def refresh_user_kyc_status(user: User) -> str:
    """Roll the user's kyc_status up from their documents."""
    statuses = {
        d.document_type: d.status
        for d in KYCDocument.query.filter_by(user_id=user.id).all()
    }
    if any(s == KycStatus.REJECTED.value for s in statuses.values()):
        status = KycStatus.REJECTED.value
    elif all(statuses.get(t) == KycStatus.APPROVED.value for t in REQUIRED_DOCUMENT_TYPES):
        status = KycStatus.APPROVED.value
    else:
        status = KycStatus.PENDING.value

    if user.kyc_status != status:
        logger.info(f"User {user.id} KYC status {user.kyc_status} -> {status}")
        user.kyc_status = status
    return status


def submit_document(user: User, data: dict) -> KYCDocument:
    """Create or replace the user's document of this type. A replacement goes back to pending."""
    doc_type = _document_type(data.get("document_type"))
    doc = KYCDocument.query.filter_by(user_id=user.id, document_type=doc_type).first()
    if doc is None:
        doc = KYCDocument(user_id=user.id, document_type=doc_type)
        # a rejected payload must never reach the session
        _apply_content(doc, data)
        db.session.add(doc)
    else:
        _apply_content(doc, data)
    doc.status = KycStatus.PENDING.value
    doc.rejection_reason = None
    doc.reviewed_by = None
    doc.reviewed_at = None

    try:
        db.session.flush()
    except IntegrityError:
        raise ConflictError("Document was submitted concurrently, please retry")

    refresh_user_kyc_status(user)
    logger.info(f"KYC {doc_type} submitted by user {user.id}")
    return doc


def attach_staged_documents(user: User, staged: Optional[List[dict]]) -> List[KYCDocument]:
    """Turn documents staged on a recruit or referral signup into KYC rows."""
    docs = []
    for item in staged or []:
        docs.append(submit_document(user, item))
    return docs


def review_document(document_id: int, reviewer: User, status: str, rejection_reason: str = None) -> KYCDocument:
    doc = db.session.get(KYCDocument, document_id)
    if not doc:
        raise NotFoundError("KYC document not found")

    if status not in (KycStatus.APPROVED.value, KycStatus.REJECTED.value):
        raise ValidationError("Status must be 'approved' or 'rejected'")
    if status == KycStatus.REJECTED.value and not (rejection_reason or "").strip():
        raise ValidationError("A rejection reason is required")

    doc.status = status
    doc.rejection_reason = rejection_reason if status == KycStatus.REJECTED.value else None
    doc.reviewed_by = reviewer.id
    doc.reviewed_at = datetime.now(timezone.utc)

    user = db.session.get(User, doc.user_id)
    refresh_user_kyc_status(user)
    logger.info(f"KYC document {doc.id} ({doc.document_type}) {status} by admin {reviewer.id}")
    return doc


def pending_documents():
    return (
        KYCDocument.query.filter_by(status=KycStatus.PENDING.value)
        .order_by(KYCDocument.created_at.asc())
        .all()
    )


def documents_for(user_id: int):
    return KYCDocument.query.filter_by(user_id=user_id).order_by(KYCDocument.document_type).all()
