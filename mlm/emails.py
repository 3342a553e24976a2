import logging
from flask import current_app
from flask_mail import Message
from extensions import mail


logger = logging.getLogger(__name__)


class EmailService:
    """Outbound mail over Flask-Mail. A failed send is logged and never aborts the calling flow."""

    @staticmethod
    def _link(path, token):
        base = current_app.config.get("APP_BASE_URL", "").rstrip("/")
        return f"{base}{path}?token={token}"

    @staticmethod
    def send(subject, recipient, body, html=None):
        if current_app.config.get("MAIL_SUPPRESS_SEND") or not current_app.config.get("MAIL_SERVER"):
            logger.info(f"Mail suppressed: '{subject}' to {recipient}")
            return False
        try:
            msg = Message(
                subject=subject,
                sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
                recipients=[recipient],
                body=body,
                html=html,
            )
            mail.send(msg)
            logger.info(f"Email '{subject}' sent to {recipient}")
            return True
        except Exception as e:
            logger.error(f"Email sending failed for {recipient}: {e}")
            return False

    @staticmethod
    def send_login_credentials(email, full_name, password):
        login_url = current_app.config.get("APP_BASE_URL", "").rstrip("/") + "/login"
        body = (
            f"Hello {full_name},\n\n"
            "Your Voltvera account has been approved.\n\n"
            f"Login email: {email}\n"
            f"Temporary password: {password}\n\n"
            f"Sign in at {login_url} and change your password after the first login.\n"
        )
        return EmailService.send("Welcome to Voltvera - Your Login Credentials", email, body)

    @staticmethod
    def send_invitation(email, full_name, token):
        link = EmailService._link("/complete-invitation", token)
        logger.debug(f"Invitation link for {email}: {link}")
        body = (
            f"Hello {full_name or ''},\n\n"
            "You have been invited to join Voltvera.\n"
            f"Complete your registration here: {link}\n\n"
            "This link expires in 24 hours.\n"
        )
        return EmailService.send("Welcome to Voltvera - Complete Your Registration", email, body)

    @staticmethod
    def send_signup_verification(email, token):
        link = EmailService._link("/verify-email", token)
        logger.debug(f"Verification link for {email}: {link}")
        body = (
            "Thanks for signing up with Voltvera.\n"
            f"Verify your email address here: {link}\n\n"
            "This link expires in 24 hours.\n"
        )
        return EmailService.send("Verify your Voltvera account", email, body)

    @staticmethod
    def send_password_reset(email, token):
        link = EmailService._link("/reset-password", token)
        logger.debug(f"Password reset link for {email}: {link}")
        body = (
            "We received a request to reset your Voltvera password.\n"
            f"Reset it here: {link}\n\n"
            "This link expires in 1 hour. If you did not ask for this, ignore this email.\n"
        )
        return EmailService.send("Reset your Voltvera password", email, body)
