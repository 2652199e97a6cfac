"""Activity log endpoints, including the Slack slash command."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from core.exceptions import NotFoundError, ValidationError
from web.config_middleware import STEPS_LOGGED
from web.context import get_services, int_field, json_body, run

activity_bp = Blueprint("activity", __name__, url_prefix="/api")


@activity_bp.route("/logs")
def list_logs():
    participant_id = request.args.get("participant_id", type=int)
    limit = request.args.get("limit", default=200, type=int)
    logs = run(get_services().logs.list_logs(participant_id, limit=max(1, min(limit, 1000))))
    return jsonify([log.to_dict() for log in logs])


@activity_bp.route("/logs", methods=["POST"])
def create_log():
    data = json_body()
    result = run(
        get_services().activity.record_activity(
            participant_id=int_field(data, "participant_id"),
            steps=data.get("step_count", data.get("steps")),
            activity=data.get("activity_type"),
            day=data.get("date_logged"),
        )
    )
    STEPS_LOGGED.labels(source="api").inc(result.log.step_count)
    return jsonify(result.to_dict()), 201


@activity_bp.route("/logs/<int:log_id>", methods=["PATCH"])
def update_log(log_id: int):
    data = json_body()
    result = run(
        get_services().activity.update_activity(
            log_id,
            steps=data.get("step_count", data.get("steps")),
            activity=data.get("activity_type"),
            day=data.get("date_logged"),
        )
    )
    return jsonify(result.to_dict())


@activity_bp.route("/logs/<int:log_id>", methods=["DELETE"])
def delete_log(log_id: int):
    deleted = run(get_services().activity.delete_activity(log_id))
    return jsonify({"deleted": deleted.to_dict()})


@activity_bp.route("/slack/logsteps", methods=["POST"])
def slack_logsteps():
    """Slash command: replies are ephemeral Slack messages, always HTTP 200."""
    slack_user_id = request.form.get("user_id", "")
    text = request.form.get("text", "")
    try:
        result = run(get_services().activity.log_from_slack(slack_user_id, text))
    except (ValidationError, NotFoundError) as e:
        return jsonify({"response_type": "ephemeral", "text": f"❌ {e}"})

    log = result.log
    STEPS_LOGGED.labels(source="slack").inc(log.step_count)
    reply = f"✅ Logged *{log.step_count:,}* steps ({log.activity_type}) for {log.date_logged}."
    if result.weekly_qualified:
        reply += " 🎟️ You're in this week's raffle!"
    if result.grand_qualified:
        reply += " 🏆 You're in the grand prize drawing!"
    return jsonify({"response_type": "ephemeral", "text": reply})
