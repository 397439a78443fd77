import json
import logging
import os
from datetime import datetime, timedelta, timezone

import newrelic.agent
from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from truthspot.config import config
from truthspot.extensions import cache, cors, jwt_manager, pocketbase
from truthspot.services.pocketbase import PocketBaseError
from truthspot.services.spot_service import SpotServiceError

# Load environment variables
load_dotenv()


def create_app(config_name=None, config_object=None):
    """Application factory pattern."""
    if config_object is not None:
        app_config = config_object
    else:
        config_name = config_name or os.environ.get("FLASK_ENV", "development")
        app_config_class = config.get(config_name, config["default"])
        app_config = app_config_class()

    app = Flask(__name__)
    app.config.from_object(app_config)

    # Set up logging
    if __name__ != "__main__":
        gunicorn_logger = logging.getLogger("gunicorn.error")
        if gunicorn_logger.handlers:
            app.logger.handlers = gunicorn_logger.handlers
            app.logger.setLevel(gunicorn_logger.level)

    # Initialize extensions
    cors.init_app(app, origins=app.config.get("CORS_ORIGINS", "*"))
    cache.init_app(app)
    jwt_manager.init_app(app)
    pocketbase.init_app(app)

    # Register blueprints
    from truthspot.api import init_app as init_api
    init_api(app)

    # Register middleware and error handlers
    register_middleware(app)
    register_error_handlers(app)

    return app


def register_middleware(app):
    """Register application middleware."""

    @app.after_request
    def refresh_expiring_jwts(response):
        """Refresh JWT tokens if they're about to expire."""
        try:
            from flask_jwt_extended import (
                create_access_token,
                get_jwt,
                get_jwt_identity,
                set_access_cookies,
            )
            claims = get_jwt()
            if claims.get("type") != "access":
                return response
            exp_timestamp = claims["exp"]
            now = datetime.now(timezone.utc)
            target_timestamp = datetime.timestamp(now + timedelta(minutes=30))
            if target_timestamp > exp_timestamp:
                access_token = create_access_token(
                    identity=get_jwt_identity(),
                    additional_claims={
                        "is_admin": claims.get("is_admin", False),
                        "pb_token": claims.get("pb_token"),
                    },
                )
                set_access_cookies(response, access_token)
            return response
        except (RuntimeError, KeyError):
            return response

    @app.before_request
    def capture_request_params():
        """Capture request parameters for monitoring."""
        if not app.config.get("DEBUG", False):
            newrelic.agent.capture_request_params()


def _error_response(code, name, msg, **extra):
    body = {"code": code, "name": name, "msg": msg}
    body.update(extra)
    response = jsonify(body)
    response.status_code = code
    return response


def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions."""
        response = e.get_response()
        response.data = json.dumps({
            "code": e.code,
            "name": e.name,
            "msg": e.description,
        })
        response.content_type = "application/json"
        return response

    @app.errorhandler(SpotServiceError)
    def handle_spot_error(e):
        """Handle permission, validation and lookup failures from the spot service."""
        return _error_response(e.status, type(e).__name__, e.message)

    @app.errorhandler(PocketBaseError)
    def handle_pocketbase_error(e):
        """Surface backend failures instead of hiding them."""
        newrelic.agent.notice_error()
        if e.status == 0 or e.status >= 500:
            app.logger.error(f"PocketBase failure: {e.message}", exc_info=True)
            return _error_response(502, "Bad Gateway", "The spot database is unavailable. Please try again later.")
        app.logger.warning(f"PocketBase rejected request ({e.status}): {e.message}")
        return _error_response(e.status, "Backend Error", e.message, fields=e.data)

    @app.errorhandler(Exception)
    def handle_unhandled_exception(e):
        """Handle unhandled exceptions."""
        newrelic.agent.notice_error()
        app.logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return _error_response(500, "Internal Server Error", "An unexpected error occurred. Please try again later.")
