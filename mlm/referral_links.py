from datetime import datetime, timedelta, timezone
import secrets
import logging
from flask import current_app
from extensions import db
from models import ReferralLink, User, UserStatus
from mlm.exceptions import ValidationError, NotFoundError
from mlm.accounts import create_member, generate_password
from mlm.placement import place_user, parse_side
from mlm.kyc import attach_staged_documents
from mlm.notifications import notify


logger = logging.getLogger(__name__)


def _aware(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_referral_link(user: User, placement_side) -> ReferralLink:
    side = parse_side(placement_side)
    ttl = current_app.config.get("REFERRAL_LINK_TTL_HOURS", 48)
    link = ReferralLink(
        token=secrets.token_urlsafe(24),
        generated_by=user.id,
        placement_side=side.value,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=ttl),
        is_used=False,
    )
    db.session.add(link)
    db.session.flush()
    logger.info(f"Referral link {link.id} generated by user {user.id} for {side.value} side")
    return link


def _usable(link, now=None):
    now = now or datetime.now(timezone.utc)
    return link is not None and not link.is_used and _aware(link.expires_at) > now


def validate_referral_link(token):
    link = ReferralLink.query.filter_by(token=token).first() if token else None
    if not _usable(link):
        return {"valid": False, "placementSide": None, "generatedBy": None}
    generator = db.session.get(User, link.generated_by)
    return {
        "valid": True,
        "placementSide": link.placement_side,
        "generatedBy": {
            "id": generator.id,
            "name": generator.full_name,
            "email": generator.email,
        } if generator else None,
    }


def _consume(token, now):
    """Flip is_used with a conditional update; only one caller can win."""
    claimed = (
        ReferralLink.query.filter(
            ReferralLink.token == token,
            ReferralLink.is_used.is_(False),
            ReferralLink.expires_at > now,
        )
        .update({ReferralLink.is_used: True, ReferralLink.used_at: now}, synchronize_session=False)
    )
    if claimed != 1:
        raise ValidationError("Referral link is invalid, expired or already used")
    return ReferralLink.query.filter_by(token=token).populate_existing().first()


def complete_referral_registration(token, email, first_name, last_name="", mobile=None,
                                   password=None, kyc_documents=None):
    """
    Register a user from a referral link: claim the token once, create the
    user as pending, place them under the link's generator on its side
    (spilling over), and stage their KYC documents.

    Returns (user, password, placement).
    """
    now = datetime.now(timezone.utc)
    if not ReferralLink.query.filter_by(token=token).first():
        raise NotFoundError("Referral link not found")

    link = _consume(token, now)
    generator = db.session.get(User, link.generated_by)
    if not generator:
        raise NotFoundError("Referral link owner no longer exists")

    password = password or generate_password()
    user = create_member(
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        mobile=mobile,
        status=UserStatus.PENDING.value,
        sponsor_id=generator.id,
    )
    placement = place_user(user.id, generator.id, link.placement_side, sponsor_id=generator.id)
    attach_staged_documents(user, kyc_documents)

    link.used_by = user.id
    notify(
        generator.id,
        "referral_registered",
        "New registration from your referral link",
        f"{user.full_name or user.email} joined on your {link.placement_side} side.",
        related_id=user.id,
    )
    db.session.flush()
    logger.info(f"Referral link {link.id} consumed by new user {user.id}")
    return user, password, placement


def links_for(user_id):
    return (
        ReferralLink.query.filter_by(generated_by=user_id)
        .order_by(ReferralLink.created_at.desc())
        .all()
    )
