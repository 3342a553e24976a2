from datetime import datetime, timedelta, timezone
import pytest
from extensions import db
from models import User, ReferralLink, KYCDocument
from mlm.referral_links import generate_referral_link, validate_referral_link, complete_referral_registration
from mlm.exceptions import ValidationError, NotFoundError


def _register(token, email="newbie@example.com", **kwargs):
    return complete_referral_registration(token=token, email=email, first_name="New", last_name="Bie", **kwargs)


def test_generated_link_validates(make_user):
    owner = make_user()
    link = generate_referral_link(owner, "right")
    db.session.commit()

    result = validate_referral_link(link.token)
    assert result["valid"] is True
    assert result["placementSide"] == "right"
    assert result["generatedBy"]["id"] == owner.id


def test_unknown_token_is_invalid(app):
    assert validate_referral_link("nope")["valid"] is False


def test_registration_places_under_generator(make_user):
    owner = make_user()
    link = generate_referral_link(owner, "left")
    db.session.commit()

    user, password, placement = _register(
        link.token,
        kyc_documents=[{"document_type": "aadhaar_card", "document_url": "https://files.example.com/a.jpg"}],
    )
    db.session.commit()

    user = db.session.get(User, user.id)
    assert user.status == "pending"
    assert user.parent_id == owner.id
    assert user.position == "left"
    assert user.sponsor_id == owner.id
    assert user.check_password(password)
    assert placement.parent_id == owner.id
    assert KYCDocument.query.filter_by(user_id=user.id).count() == 1

    link = ReferralLink.query.filter_by(token=link.token).one()
    assert link.is_used
    assert link.used_by == user.id


def test_token_is_consumed_once(make_user):
    owner = make_user()
    link = generate_referral_link(owner, "left")
    db.session.commit()

    _register(link.token)
    db.session.commit()

    assert validate_referral_link(link.token)["valid"] is False
    with pytest.raises(ValidationError):
        _register(link.token, email="second@example.com")


def test_expired_token_is_rejected(make_user):
    owner = make_user()
    link = generate_referral_link(owner, "right")
    link.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.session.commit()

    assert validate_referral_link(link.token)["valid"] is False
    with pytest.raises(ValidationError):
        _register(link.token)


def test_missing_token_is_not_found(app):
    with pytest.raises(NotFoundError):
        _register("does-not-exist")
