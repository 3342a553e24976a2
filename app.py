import os
from datetime import datetime, timezone
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm.exc import StaleDataError
from config import Config
from extensions import db, login_manager, init_extensions
from logger import configure_app_logging
from mlm.exceptions import MLMError


# --------------------------------------------------------------------------------------------------------
#       Application factory
# --------------------------------------------------------------------------------------------------------
def create_app(config_class=Config):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    if not app.config.get("SECRET_KEY"):
        raise ValueError("SECRET_KEY environment variable is not set")

    configure_app_logging(app)

    # ------------------------------------------------------------------------------------------------
    # DATABASE URI: sqlite fallback needs the instance dir
    # ------------------------------------------------------------------------------------------------
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
        os.makedirs(app.instance_path, exist_ok=True)

    init_extensions(app)
    register_blueprints(app)
    register_error_handlers(app)

    from commands import register_commands
    register_commands(app)

    # --------------------------------------------------------------------------------------------
    # Flask-Login
    # --------------------------------------------------------------------------------------------
    from models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Authentication required"}), 401

    @app.route("/health")
    def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}, 200

    app.logger.info("Voltvera API started (env=%s)", app.config.get("FLASK_ENV"))
    return app


def register_blueprints(app):
    """Register all blueprints"""
    from blueprints.auth import bp as auth_bp
    from blueprints.users import bp as users_bp
    from blueprints.admin import admin_bp
    from blueprints.recruitment import bp as recruitment_bp
    from blueprints.referral import bp as referral_bp
    from blueprints.kyc import bp as kyc_bp
    from blueprints.wallet import bp as wallet_bp
    from blueprints.products import bp as products_bp
    from blueprints.team import bp as team_bp
    from blueprints.service_requests import bp as requests_bp
    from blueprints.content import bp as content_bp
    from blueprints.founder import bp as founder_bp
    from blueprints.notifications import bp as notifications_bp
    from blueprints.profile import bp as profile_bp

    for blueprint in (
        auth_bp, users_bp, admin_bp, recruitment_bp, referral_bp, kyc_bp, wallet_bp,
        products_bp, team_bp, requests_bp, content_bp, founder_bp, notifications_bp,
        profile_bp,
    ):
        app.register_blueprint(blueprint)


def register_error_handlers(app):
    @app.errorhandler(MLMError)
    def handle_domain_error(e):
        db.session.rollback()
        app.logger.info(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(PydanticValidationError)
    def handle_schema_error(e):
        db.session.rollback()
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]) or None, "message": err["msg"]}
            for err in e.errors()
        ]
        return jsonify({"error": "Validation error", "errors": errors}), 400

    @app.errorhandler(StaleDataError)
    def handle_stale_data(e):
        db.session.rollback()
        app.logger.warning(f"Optimistic lock conflict: {e}")
        return jsonify({"error": "The record was modified concurrently, please retry"}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.exception(f"Unhandled error: {e}")
        return jsonify({"error": "Internal server error"}), 500


# ----------------------
# Local development
# ----------------------
if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(debug=app.config.get("DEBUG", False), host="0.0.0.0", port=port)
