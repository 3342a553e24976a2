import pytest
from extensions import db
from models import User, KYCDocument
from mlm.kyc import submit_document, review_document, REQUIRED_DOCUMENT_TYPES
from mlm.exceptions import ValidationError


def _doc(doc_type, **extra):
    data = {"document_type": doc_type, "document_url": f"https://files.example.com/{doc_type}.jpg"}
    data.update(extra)
    return data


def _submit_all(user):
    docs = [submit_document(user, _doc(t)) for t in REQUIRED_DOCUMENT_TYPES]
    db.session.commit()
    return docs


def test_new_documents_are_pending(make_user):
    user = make_user()
    doc = submit_document(user, _doc("pan_card"))
    db.session.commit()

    assert doc.status == "pending"
    assert db.session.get(User, user.id).kyc_status == "pending"


def test_exactly_one_content_source(make_user):
    user = make_user()
    with pytest.raises(ValidationError):
        submit_document(user, {"document_type": "photo"})
    with pytest.raises(ValidationError):
        submit_document(user, _doc("photo", document_data="aGVsbG8="))

    # nothing half-built was left behind for the next flush
    assert KYCDocument.query.filter_by(user_id=user.id).count() == 0
    doc = submit_document(user, _doc("photo"))
    db.session.commit()
    assert doc.status == "pending"


def test_unknown_document_type(make_user):
    with pytest.raises(ValidationError):
        submit_document(make_user(), _doc("passport"))


def test_all_required_approved_rolls_up(make_user):
    admin = make_user(role="admin")
    user = make_user()
    docs = _submit_all(user)

    for doc in docs[:-1]:
        review_document(doc.id, admin, "approved")
    db.session.commit()
    assert db.session.get(User, user.id).kyc_status == "pending"

    review_document(docs[-1].id, admin, "approved")
    db.session.commit()
    assert db.session.get(User, user.id).kyc_status == "approved"


def test_any_rejection_rolls_up(make_user):
    admin = make_user(role="admin")
    user = make_user()
    docs = _submit_all(user)

    review_document(docs[0].id, admin, "rejected", "Blurry scan")
    db.session.commit()

    assert db.session.get(User, user.id).kyc_status == "rejected"
    assert db.session.get(KYCDocument, docs[0].id).rejection_reason == "Blurry scan"


def test_rejection_needs_reason(make_user):
    admin = make_user(role="admin")
    doc = submit_document(make_user(), _doc("photo"))
    with pytest.raises(ValidationError):
        review_document(doc.id, admin, "rejected", "  ")


def test_replacement_resets_to_pending(make_user):
    admin = make_user(role="admin")
    user = make_user()
    docs = _submit_all(user)
    for doc in docs:
        review_document(doc.id, admin, "approved")
    db.session.commit()
    assert db.session.get(User, user.id).kyc_status == "approved"

    replaced = submit_document(user, {
        "document_type": "photo",
        "document_data": "aGVsbG8=",
        "document_content_type": "image/png",
        "document_filename": "new.png",
        "document_size": 5,
    })
    db.session.commit()

    assert KYCDocument.query.filter_by(user_id=user.id, document_type="photo").count() == 1
    assert replaced.status == "pending"
    assert replaced.document_url is None
    assert replaced.reviewed_by is None
    assert db.session.get(User, user.id).kyc_status == "pending"
