"""Route registration for the Flask app."""

from __future__ import annotations

from flask import Flask

from .activity import activity_bp
from .digests import digests_bp
from .health import health_bp
from .milestones import milestones_bp
from .participants import participants_bp
from .prizes import prizes_bp
from .stats import stats_bp


def register_routes(app: Flask) -> None:
    app.register_blueprint(health_bp)
    app.register_blueprint(participants_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(prizes_bp)
    app.register_blueprint(milestones_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(digests_bp)
