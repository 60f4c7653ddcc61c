import logging
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from flask.logging import default_handler

from .config import load_settings

HELLO_BODY = "Hello world"

DEVELOPMENT_LOG_FORMAT = "[%(levelname)s]: %(message)s"
PLAIN_LOG_FORMAT = "%(message)s"


def configure_logging(app, settings):
    """Prefixes log lines with the level name outside of production."""
    log_format = DEVELOPMENT_LOG_FORMAT if settings.is_development else PLAIN_LOG_FORMAT
    default_handler.setFormatter(logging.Formatter(log_format))
    app.logger.setLevel(logging.INFO)


def create_app(settings=None):
    """Creates the Flask application serving ``GET /hello``."""
    if settings is None:
        settings = load_settings()

    app = Flask(__name__)
    app.config["SETTINGS"] = settings
    configure_logging(app, settings)

    # --- Request logging ---
    if settings.enable_logging:
        @app.before_request
        def log_request():
            body = request.get_data(as_text=True) or "{}"
            path = request.full_path.rstrip("?")
            app.logger.info(f"HTTP Request - Method: {request.method} Path: {path} Body: {body}")

    # --- Routes ---
    @app.route("/hello", methods=["GET"], provide_automatic_options=False)
    def hello():
        """Returns the fixed greeting."""
        return HELLO_BODY

    # --- Error handlers ---
    # A method mismatch on /hello is reported exactly like an unknown path.
    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(error):
        return jsonify(error="Not Found", status=404, path=request.path), 404

    @app.errorhandler(500)
    def internal_error(error):
        original = getattr(error, "original_exception", None) or error
        app.logger.error(
            f"Unhandled application error occurred: {type(original).__name__}: {original} "
            f"(method={request.method}, path={request.path}, client={request.remote_addr})"
        )
        return jsonify(
            error="Internal Server Error",
            status=500,
            timestamp=datetime.now(timezone.utc).isoformat(),
            path=request.path,
        ), 500

    return app
