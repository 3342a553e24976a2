import pytest
from extensions import db
from models import User, PendingRecruit, KYCDocument, Notification
from mlm.recruits import submit_recruit, record_upline_decision, approve_recruit, reject_recruit
from mlm.exceptions import ConflictError, PermissionDenied, RecruitWorkflowError


STAGED_DOCS = [
    {"document_type": "pan_card", "document_url": "https://files.example.com/pan.jpg", "document_number": "ABCDE1234F"},
    {"document_type": "photo", "document_data": "aGVsbG8=", "document_content_type": "image/png",
     "document_filename": "me.png", "document_size": 5},
]


@pytest.fixture
def network(make_user):
    admin = make_user(role="admin")
    upline = make_user()
    recruiter = make_user(parent=upline, side="left", sponsor=upline)
    return admin, upline, recruiter


def _submit(recruiter, email="recruit@example.com"):
    recruit = submit_recruit(recruiter, email=email, full_name="Ravi Kumar", mobile="9876543210",
                             kyc_documents=STAGED_DOCS)
    db.session.commit()
    return recruit


def test_submit_goes_to_recruiters_sponsor(network):
    _, upline, recruiter = network
    recruit = _submit(recruiter)

    assert recruit.status == "awaiting_upline"
    assert recruit.upline_decision == "pending"
    assert recruit.upline_id == upline.id
    assert Notification.query.filter_by(user_id=upline.id, type="recruit_pending").count() == 1


def test_recruiter_without_sponsor_is_own_upline(make_user):
    recruiter = make_user()
    recruit = _submit(recruiter)
    assert recruit.upline_id == recruiter.id


def test_duplicate_email_conflicts(network, make_user):
    _, _, recruiter = network
    existing = make_user()
    with pytest.raises(ConflictError):
        submit_recruit(recruiter, email=existing.email, full_name="Someone")

    _submit(recruiter)
    with pytest.raises(ConflictError):
        submit_recruit(recruiter, email="recruit@example.com", full_name="Again")


def test_only_the_upline_decides(network):
    _, _, recruiter = network
    recruit = _submit(recruiter)
    with pytest.raises(PermissionDenied):
        record_upline_decision(recruit.id, recruiter, "approved", position="left")


def test_admin_cannot_approve_before_upline(network):
    admin, _, recruiter = network
    recruit = _submit(recruiter)

    with pytest.raises(RecruitWorkflowError) as exc:
        approve_recruit(recruit.id, admin)
    assert "upline" in exc.value.message
    assert exc.value.status_code == 409


def test_full_approval_creates_placed_member(network):
    admin, upline, recruiter = network
    recruit = _submit(recruiter)

    record_upline_decision(recruit.id, upline, "approved", position="right")
    db.session.commit()
    recruit = db.session.get(PendingRecruit, recruit.id)
    assert recruit.status == "awaiting_admin"
    assert recruit.position == "right"
    assert recruit.upline_decision_at is not None

    result = approve_recruit(recruit.id, admin)
    db.session.commit()

    user = db.session.get(User, result.user.id)
    assert user.status == "active"
    assert user.parent_id == upline.id
    assert user.position == "right"
    assert user.sponsor_id == recruiter.id
    assert user.check_password(result.password)
    assert db.session.get(User, upline.id).right_child_id == user.id
    assert KYCDocument.query.filter_by(user_id=user.id).count() == 2
    assert db.session.get(PendingRecruit, recruit.id) is None
    assert Notification.query.filter_by(user_id=recruiter.id, type="recruit_approved").count() == 1


def test_approval_spills_over_when_side_taken(network, make_user):
    admin, upline, recruiter = network
    recruit = _submit(recruiter)
    record_upline_decision(recruit.id, upline, "approved", position="left")
    db.session.commit()

    result = approve_recruit(recruit.id, admin)
    db.session.commit()

    # recruiter already holds the upline's left slot
    assert db.session.get(User, result.user.id).parent_id == recruiter.id


def test_upline_rejection_retains_row(network):
    _, upline, recruiter = network
    recruit = _submit(recruiter)

    record_upline_decision(recruit.id, upline, "rejected", reason="Incomplete documents")
    db.session.commit()

    recruit = db.session.get(PendingRecruit, recruit.id)
    assert recruit.status == "rejected"
    assert recruit.upline_decision == "rejected"
    assert recruit.rejected_by == upline.id
    assert recruit.rejection_reason == "Incomplete documents"
    assert Notification.query.filter_by(user_id=recruiter.id, type="recruit_rejected").count() == 1


def test_admin_rejection_notifies_recruiter_and_upline(network):
    admin, upline, recruiter = network
    recruit = _submit(recruiter)
    record_upline_decision(recruit.id, upline, "approved", position="left")

    reject_recruit(recruit.id, admin, "Duplicate application")
    db.session.commit()

    recruit = db.session.get(PendingRecruit, recruit.id)
    assert recruit.status == "rejected"
    assert recruit.rejected_at is not None
    assert Notification.query.filter_by(type="recruit_rejected").count() == 2
    with pytest.raises(RecruitWorkflowError):
        approve_recruit(recruit.id, admin)


def test_decision_is_final(network):
    _, upline, recruiter = network
    recruit = _submit(recruiter)
    record_upline_decision(recruit.id, upline, "approved", position="left")
    db.session.commit()

    with pytest.raises(RecruitWorkflowError):
        record_upline_decision(recruit.id, upline, "rejected", reason="changed my mind")
