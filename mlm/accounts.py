from datetime import datetime, timezone
from decimal import Decimal
import secrets
import string
import logging
from extensions import db
from models import User, UserRole, UserStatus, EmailToken
from mlm.exceptions import ConflictError, ValidationError, NotFoundError
from mlm.wallet import WalletService


logger = logging.getLogger(__name__)


def generate_password(length=10):
    """Temporary password with at least one letter and one digit."""
    chars = string.ascii_letters + string.digits
    while True:
        password = ''.join(secrets.choice(chars) for _ in range(length))
        if any(c.isalpha() for c in password) and any(c.isdigit() for c in password):
            return password


def split_full_name(full_name):
    parts = (full_name or "").strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


def email_taken(email):
    return User.query.filter(db.func.lower(User.email) == email.lower()).first() is not None


def create_member(email, password, first_name="", last_name="", mobile=None,
                  role=UserRole.USER.value, status=UserStatus.ACTIVE.value,
                  sponsor_id=None, package_amount=Decimal("0"), is_hidden=False,
                  email_verified=True):
    """
    Insert a user and their empty wallet. Tree placement is the caller's
    job. Raises ConflictError on a duplicate email.
    """
    email = email.strip().lower()
    if email_taken(email):
        raise ConflictError("A user with this email already exists")

    now = datetime.now(timezone.utc)
    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        mobile=mobile,
        role=role,
        status=status,
        sponsor_id=sponsor_id,
        package_amount=package_amount or Decimal("0"),
        is_hidden=is_hidden,
        registration_date=now,
        activation_date=now if status == UserStatus.ACTIVE.value else None,
        email_verified_at=now if email_verified else None,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.flush()

    WalletService.get_wallet(user.id)
    logger.info(f"Created {role} user {user.id} ({email}) status={status}")
    return user


# ==========================================================
#                  EMAIL TOKENS
# ==========================================================

def issue_email_token(email, type_, ttl):
    # one live token per (email, type)
    EmailToken.query.filter_by(email=email, type=type_.value).delete(synchronize_session=False)
    token = EmailToken(
        email=email,
        token=secrets.token_urlsafe(32),
        type=type_.value,
        expires_at=datetime.now(timezone.utc) + ttl,
    )
    db.session.add(token)
    db.session.flush()
    return token


def consume_email_token(raw_token, type_):
    """Validate and delete a token. Raises ValidationError when unknown or expired."""
    token = EmailToken.query.filter_by(token=raw_token, type=type_.value).first()
    if not token:
        raise ValidationError("Invalid or expired token")
    if token.is_expired():
        raise ValidationError("Invalid or expired token")
    db.session.delete(token)
    return token


def peek_email_token(raw_token, type_):
    token = EmailToken.query.filter_by(token=raw_token, type=type_.value).first()
    if not token or token.is_expired():
        return None
    return token


def get_user_or_404(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
