"""Application factory."""

import json
import logging
import os
import uuid
from http import HTTPStatus

from flask import Flask, jsonify, g, request
from flask.logging import default_handler
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

import services
from config import Config
from models import db
from routes.avatars import avatars_bp
from routes.users import users_bp

migrate = Migrate()
jwt = JWTManager()


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_callbacks(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Ensure storage directories exist
    for key in ("AVATAR_DIR", "UPLOAD_TMP_DIR"):
        directory = app.config.get(key)
        if directory:
            os.makedirs(directory, exist_ok=True)

    services.init_app(app)

    # Blueprints
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(avatars_bp, url_prefix="/avatars")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    app.logger.setLevel(level)
    services_logger = logging.getLogger("services")
    services_logger.setLevel(level)
    if default_handler not in services_logger.handlers:
        services_logger.addHandler(default_handler)


def _error_payload(error: str, detail: str) -> dict:
    return {
        "error": error,
        "detail": detail,
        "request_id": g.get("request_id") or str(uuid.uuid4()),
    }


def _unauthorized(detail: str):
    response = jsonify(_error_payload("Unauthorized", detail))
    response.status_code = HTTPStatus.UNAUTHORIZED
    return response


def _presented_token() -> str | None:
    """Return the raw bearer token sent with the current request."""

    header = request.headers.get("Authorization", "")
    parts = header.split()
    if len(parts) == 2 and parts[0] == "Bearer":
        return parts[1]
    return None


def _register_jwt_callbacks(app: Flask) -> None:
    """Tie JWT validity to the token stored on the account."""

    @jwt.user_lookup_loader
    def _load_session_user(_jwt_header, jwt_data):
        return services.get_accounts().tokens.resolve(
            jwt_data.get("sub"), _presented_token()
        )

    @jwt.user_lookup_error_loader
    def _stale_token(_jwt_header, _jwt_data):
        return _unauthorized("Not authorized.")

    @jwt.expired_token_loader
    def _expired_token(_jwt_header, _jwt_data):
        return _unauthorized("Token has expired.")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _unauthorized(reason)

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _unauthorized(reason)


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        payload = _error_payload(getattr(error, "name", "Error"), error.description)
        response = error.get_response()
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", payload["request_id"])
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        app.logger.exception("Unhandled application error", exc_info=error)
        payload = _error_payload("Internal Server Error", "An unexpected error occurred.")
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", payload["request_id"])
        return response


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
