from datetime import datetime, timedelta, timezone
import logging
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_user, logout_user, login_required, current_user
from extensions import db
from models import User, UserStatus, EmailTokenType
from schemas import (
    LoginRequest, SignupRequest, ChangePasswordRequest, ForgotPasswordRequest,
    ResetPasswordRequest, CompleteInvitationRequest,
)
from mlm.accounts import create_member, issue_email_token, consume_email_token, peek_email_token
from mlm.emails import EmailService
from mlm.exceptions import AuthError, ValidationError, NotFoundError
from blueprints.api_helpers import parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


#===========================================================================
#      LOGIN / LOGOUT / SESSION
#==============================================================================
@bp.route("/login", methods=["POST"])
def login():
    data = parse_body(LoginRequest)

    user = User.query.filter(db.func.lower(User.email) == data.email).first()
    if not user or not user.check_password(data.password):
        logger.info(f"Failed login for {data.email}")
        raise AuthError("Invalid email or password")
    if user.status == UserStatus.INACTIVE.value:
        raise AuthError("Account is inactive")

    duration = timedelta(days=current_app.config.get("REMEMBER_COOKIE_DURATION_DAYS", 30))
    login_user(user, remember=data.remember_me, duration=duration if data.remember_me else None)
    user.last_active_at = datetime.now(timezone.utc)
    db.session.commit()

    logger.info(f"User {user.id} logged in (remember={data.remember_me})")
    return jsonify({"message": "Login successful", "user": user.to_dict()}), 200


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logger.info(f"User {current_user.id} logged out")
    logout_user()
    return jsonify({"message": "Logged out"}), 200


@bp.route("/user", methods=["GET"])
@login_required
def session_user():
    return jsonify(current_user.to_dict()), 200


@bp.route("/change-password", methods=["POST"])
@login_required
def change_password():
    data = parse_body(ChangePasswordRequest)
    if not current_user.check_password(data.current_password):
        raise ValidationError("Current password is incorrect")

    current_user.set_password(data.new_password)
    db.session.commit()
    logger.info(f"User {current_user.id} changed password")
    return jsonify({"message": "Password updated"}), 200


#===========================================================================
#      SIGN UP + EMAIL VERIFICATION
#==============================================================================
@bp.route("/signup", methods=["POST"])
def signup():
    """Self-signup. The account stays pending until the email is verified."""
    data = parse_body(SignupRequest)

    user = create_member(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        mobile=data.mobile,
        status=UserStatus.PENDING.value,
        email_verified=False,
    )
    token = issue_email_token(user.email, EmailTokenType.SIGNUP, timedelta(hours=24))
    db.session.commit()

    EmailService.send_signup_verification(user.email, token.token)
    return jsonify({"message": "Signup successful, check your email to verify your account",
                    "userId": user.id}), 201


@bp.route("/verify-email", methods=["GET", "POST"])
def verify_email():
    raw = request.args.get("token") or (request.get_json(silent=True) or {}).get("token")
    if not raw:
        raise ValidationError("Token is required")

    token = consume_email_token(raw, EmailTokenType.SIGNUP)
    user = User.query.filter(db.func.lower(User.email) == token.email).first()
    if not user:
        raise NotFoundError("User not found")

    user.email_verified_at = datetime.now(timezone.utc)
    db.session.commit()
    logger.info(f"User {user.id} verified email")
    return jsonify({"message": "Email verified", "user": user.to_dict()}), 200


#===========================================================================
#      PASSWORD RESET
#==============================================================================
@bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    data = parse_body(ForgotPasswordRequest)
    user = User.query.filter(db.func.lower(User.email) == data.email).first()

    # Same answer whether or not the account exists
    if user:
        ttl = timedelta(minutes=current_app.config.get("PASSWORD_RESET_TTL_MINUTES", 60))
        token = issue_email_token(user.email, EmailTokenType.PASSWORD_RESET, ttl)
        db.session.commit()
        EmailService.send_password_reset(user.email, token.token)
    return jsonify({"message": "If the email exists, a reset link has been sent"}), 200


@bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = parse_body(ResetPasswordRequest)
    token = consume_email_token(data.token, EmailTokenType.PASSWORD_RESET)
    user = User.query.filter(db.func.lower(User.email) == token.email).first()
    if not user:
        raise NotFoundError("User not found")

    user.set_password(data.new_password)
    db.session.commit()
    logger.info(f"User {user.id} reset password")
    return jsonify({"message": "Password has been reset"}), 200


#===========================================================================
#      ADMIN INVITATIONS
#==============================================================================
@bp.route("/validate-invitation", methods=["GET"])
def validate_invitation():
    token = peek_email_token(request.args.get("token", ""), EmailTokenType.INVITATION)
    if not token:
        return jsonify({"valid": False}), 200
    return jsonify({"valid": True, "email": token.email}), 200


@bp.route("/complete-invitation", methods=["POST"])
def complete_invitation():
    data = parse_body(CompleteInvitationRequest)
    token = consume_email_token(data.token, EmailTokenType.INVITATION)
    user = User.query.filter(db.func.lower(User.email) == token.email).first()
    if not user:
        raise NotFoundError("Invited user not found")

    user.set_password(data.password)
    for field in ("first_name", "last_name", "mobile"):
        value = getattr(data, field)
        if value:
            setattr(user, field, value)
    now = datetime.now(timezone.utc)
    user.email_verified_at = user.email_verified_at or now
    if user.status == UserStatus.PENDING.value:
        user.status = UserStatus.ACTIVE.value
        user.activation_date = now
    db.session.commit()

    login_user(user)
    logger.info(f"User {user.id} completed invitation")
    return jsonify({"message": "Registration complete", "user": user.to_dict()}), 200
