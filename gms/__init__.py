"""Application factory for the Gym Management System."""

from __future__ import annotations

import logging
import os

from flask import Flask, jsonify

from gms.blueprints.api import api_bp
from gms.blueprints.auth import auth_bp
from gms.config import Config
from gms.extensions import (
    db,
    migrate,
    login_manager,
    limiter,
)
from gms.models import User
from gms.security.headers import (
    configure_security_headers,
    configure_secure_session,
    validate_input_length,
)

_ERROR_MESSAGES = {
    400: "Bad request",
    401: "Authentication required",
    403: "You do not have permission to perform this action",
    404: "Not found",
    405: "Method not allowed",
    413: "Request body too large",
    429: "Too many requests, please try again later",
    500: "Internal server error",
}


def _register_error_handlers(app: Flask) -> None:
    def make_handler(status: int):
        def handler(error):
            if status == 500:
                app.logger.exception("Unhandled error: %s", error)
            return jsonify({"error": getattr(error, "name", "Error"), "message": _ERROR_MESSAGES[status]}), status
        return handler

    for status in _ERROR_MESSAGES:
        app.register_error_handler(status, make_handler(status))


def create_app(config_class=Config):
    """Create Flask application."""
    # Package-relative templates so Jinja finds gms/templates/email
    app = Flask(__name__, template_folder="templates")
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)

    # Configure security
    configure_security_headers(app)
    configure_secure_session(app)
    validate_input_length(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        return db.session.get(User, user_id)

    @login_manager.unauthorized_handler
    def handle_unauthorized():
        return jsonify({"error": "authentication", "message": _ERROR_MESSAGES[401]}), 401

    # Ensure models are registered for migrations
    import gms.models  # noqa: F401

    if os.getenv("FLASK_ENV") == "development":
        app.config["TEMPLATES_AUTO_RELOAD"] = True
        app.jinja_env.auto_reload = True

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(api_bp, url_prefix='/api/v1')

    _register_error_handlers(app)

    # Single-installation deployments run without migrations
    if app.config.get("AUTO_CREATE_SCHEMA"):
        with app.app_context():
            db.create_all()

    # Register CLI commands
    from gms.commands import register_commands
    register_commands(app)

    return app
