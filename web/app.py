"""Flask application factory for the JSON API."""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from werkzeug.exceptions import HTTPException

from core import get_logger
from core.exceptions import ApplicationError, NotFoundError, ValidationError
from services.async_runner import LoopRunner
from services.container import ServiceContainer
from web.config_middleware import configure_app, setup_metrics
from web.routes import register_routes

logger = get_logger(__name__)


def create_app(
    config,
    services: Optional[ServiceContainer] = None,
    runner: Optional[LoopRunner] = None,
    testing: bool = False,
) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Application configuration
        services: Service container shared with the asyncio side
        runner: Bridge to the loop that owns the database pool
        testing: Whether running in testing mode

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    configure_app(app, config, testing)
    app.config["SERVICES"] = services
    app.config["LOOP_RUNNER"] = runner

    setup_metrics(app)
    register_routes(app)

    _setup_routes(app)
    _setup_error_handlers(app)

    return app


def _setup_routes(app: Flask) -> None:
    @app.route("/metrics")
    def metrics():
        """Expose Prometheus metrics."""
        return generate_latest(), 200, {"Content-Type": CONTENT_TYPE_LATEST}


def _setup_error_handlers(app: Flask) -> None:
    """Map domain errors onto JSON responses.

    Args:
        app: Flask application instance
    """
    @app.errorhandler(ValidationError)
    def validation_error(error):
        return jsonify({"error": str(error)}), 400

    @app.errorhandler(NotFoundError)
    def not_found_error(error):
        return jsonify({"error": str(error)}), 404

    @app.errorhandler(ApplicationError)
    def application_error(error):
        logger.error(f"Request failed: {error}", exc_info=True)
        return jsonify({"error": str(error)}), 500

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({"error": "Internal server error"}), 500
