# ==========================================================================================================
# -------------- Configuration file for the Voltvera Flask application ------------------------------------
# ==========================================================================================================
import os
from decimal import Decimal
from dotenv import load_dotenv


if os.environ.get("FLASK_ENV") != "production":
    load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def _database_url():
    url = os.getenv("DATABASE_URL")
    if not url:
        url = f"sqlite:///{os.path.join(basedir, 'instance', 'voltvera.db')}"

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+pg8000://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+pg8000://", 1)
    return url


class Config:

    SECRET_KEY = os.getenv("SECRET_KEY")

    FLASK_ENV = os.getenv("FLASK_ENV", "production")
    DEBUG = os.getenv("DEBUG", "False").lower() in ("true", "1", "t")
    TESTING = False

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = (
        {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "pool_recycle": 300,
        }
        if not SQLALCHEMY_DATABASE_URI.startswith("sqlite")
        else {}
    )

    # Sessions live in Flask's signed cookie; this is the only session store.
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = FLASK_ENV == "production"
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SECURE = FLASK_ENV == "production"
    REMEMBER_COOKIE_DURATION_DAYS = 30

    # Outbound mail (SendGrid SMTP relay: MAIL_USERNAME=apikey)
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.sendgrid.net")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "True").lower() in ("true", "1", "t")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@voltveratech.com")
    MAIL_SUPPRESS_SEND = os.getenv("MAIL_SUPPRESS_SEND", "False").lower() in ("true", "1", "t")

    APP_BASE_URL = os.getenv("APP_BASE_URL", "https://voltveratech.com")

    LOG_DIR = os.getenv("LOG_DIR", "logs")

    # Business rules
    REFERRAL_LINK_TTL_HOURS = int(os.getenv("REFERRAL_LINK_TTL_HOURS", "48"))
    INVITATION_TTL_HOURS = 24
    PASSWORD_RESET_TTL_MINUTES = 60
    MIN_WITHDRAWAL = Decimal(os.getenv("MIN_WITHDRAWAL", "500"))
    MAX_WITHDRAWAL = Decimal(os.getenv("MAX_WITHDRAWAL", "100000"))
    SPONSOR_COMMISSION_RATE = Decimal(os.getenv("SPONSOR_COMMISSION_RATE", "0.10"))


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False
    MAIL_SUPPRESS_SEND = True
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(basedir, "logs"))
