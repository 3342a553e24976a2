# logger.py - Centralized logging configuration
import os
import logging
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"


def setup_logger(name, log_file=None, level=logging.INFO, log_dir=None):
    """Set up a logger with file rotation"""
    log_dir = log_dir or os.environ.get("LOG_DIR", "logs")
    if not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    if not log_file:
        log_file = os.path.join(log_dir, f"{name}.log")

    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        logger.setLevel(level)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1024 * 1024,
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

        # Console handler for development
        if os.environ.get("FLASK_ENV") != "production":
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(logging.Formatter(
                "%(name)s - %(levelname)s - %(message)s"
            ))
            logger.addHandler(console_handler)

    return logger


def configure_app_logging(app):
    """Route app.logger and the service loggers through the rotating handlers."""
    log_dir = app.config.get("LOG_DIR", "logs")
    level = logging.DEBUG if app.debug else logging.INFO

    app_logger = setup_logger("app", level=level, log_dir=log_dir)
    app.logger.handlers.clear()
    for handler in app_logger.handlers:
        app.logger.addHandler(handler)
    app.logger.setLevel(level)
    app.logger.propagate = False

    # mlm.* and blueprints.* module loggers propagate up to these
    for name in ("mlm", "blueprints"):
        setup_logger(name, level=level, log_dir=log_dir)

    setup_logger("wallet", level=level, log_dir=log_dir)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return app_logger


wallet_logger = logging.getLogger("wallet")
