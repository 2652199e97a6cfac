"""Teams, participants and name-based login."""

from __future__ import annotations

from flask import Blueprint, jsonify

from core.exceptions import NotFoundError, ParticipantNotFoundError, ValidationError
from web.context import get_services, int_field, json_body, run

participants_bp = Blueprint("participants", __name__, url_prefix="/api")


@participants_bp.route("/teams")
def list_teams():
    teams = run(get_services().teams.list_all())
    return jsonify([team.to_dict() for team in teams])


@participants_bp.route("/participants")
def list_participants():
    participants = run(get_services().participants.list_all())
    return jsonify([participant.to_dict() for participant in participants])


@participants_bp.route("/participants/<int:participant_id>", methods=["PATCH"])
def move_participant(participant_id: int):
    services = get_services()
    team_id = int_field(json_body(), "team_id")
    if run(services.teams.get(team_id)) is None:
        raise NotFoundError(f"Team {team_id} not found")
    if not run(services.participants.set_team(participant_id, team_id)):
        raise ParticipantNotFoundError(f"Participant {participant_id} not found")
    services.stats.cache.invalidate()
    return jsonify(run(services.participants.get(participant_id)).to_dict())


@participants_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    username = (data.get("username") or "").strip()
    if not username:
        raise ValidationError("username is required")
    team_id = int_field(data, "team_id")

    participant = run(get_services().participants.find_by_login(username, team_id))
    if participant is None:
        raise ParticipantNotFoundError("No participant with that name on this team")
    return jsonify(participant.to_dict())


@participants_bp.route("/participants/<int:participant_id>/totals")
def participant_totals(participant_id: int):
    return jsonify(run(get_services().stats.participant_totals(participant_id)))


@participants_bp.route("/participants/<int:participant_id>/daily-wins")
def daily_wins(participant_id: int):
    services = get_services()
    if run(services.participants.get(participant_id)) is None:
        raise ParticipantNotFoundError(f"Participant {participant_id} not found")
    wins = run(services.daily_winners.count_for(participant_id))
    return jsonify({"participant_id": participant_id, "daily_wins": wins})
