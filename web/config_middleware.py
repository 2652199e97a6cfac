"""Flask settings and request metrics."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from flask import Flask, g, request
from prometheus_client import Counter, Histogram

if TYPE_CHECKING:
    from config import Config

REQUEST_LATENCY = Histogram(
    "step_challenge_request_seconds",
    "API request latency by endpoint",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5),
)
REQUEST_ERRORS = Counter(
    "step_challenge_request_errors_total",
    "API responses with a 5xx status",
    ["method", "endpoint"],
)
STEPS_LOGGED = Counter(
    "step_challenge_steps_logged_total",
    "Steps accepted through the API and the slash command",
    ["source"],
)
DRAWS = Counter(
    "step_challenge_draws_total",
    "Raffle draw requests by outcome",
    ["prize_type", "outcome"],
)


def configure_app(app: Flask, config: Config, testing: bool = False) -> None:
    app.config.update(
        SECRET_KEY=config.secret_key,
        DATABASE_PATH=config.database_path,
        TESTING=testing,
    )

    if config.environment == "production":
        if config.secret_key == "development_secret_key_change_me":
            app.logger.warning("Default SECRET_KEY in production")
        if config.notifications_enabled and not config.slack_bot_token:
            app.logger.warning("SLACK_BOT_TOKEN is not set, Slack posts will be skipped")


def record_draw(result) -> None:
    if result.success:
        outcome = "drawn"
    elif result.already_drawn:
        outcome = "already_drawn"
    else:
        outcome = "no_entrants"
    DRAWS.labels(prize_type=result.prize.prize_type.value, outcome=outcome).inc()


def setup_metrics(app: Flask) -> None:
    """Time every request, labelled by blueprint endpoint."""
    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def observe(response):
        endpoint = request.endpoint or "unmatched"
        started = getattr(g, "request_started", None)
        if started is not None:
            REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(time.perf_counter() - started)
        if response.status_code >= 500:
            REQUEST_ERRORS.labels(method=request.method, endpoint=endpoint).inc()
        return response
