"""Prize listing, opt-in and raffle draws."""

from __future__ import annotations

from flask import Blueprint, jsonify

from web.config_middleware import record_draw
from web.context import bool_field, flag_arg, get_services, int_field, json_body, run

prizes_bp = Blueprint("prizes", __name__, url_prefix="/api/prizes")


@prizes_bp.route("")
def list_prizes():
    prizes = run(get_services().prizes.list_all())
    return jsonify([prize.to_dict() for prize in prizes])


@prizes_bp.route("/<int:week>/entries")
def week_entries(week: int):
    services = get_services()
    prize = run(services.raffle.resolve_week(week))
    entries = run(services.prizes.list_entries(prize.id))
    return jsonify({"prize": prize.to_dict(), "entries": [entry.to_dict() for entry in entries]})


@prizes_bp.route("/<int:week>/opt", methods=["POST"])
def opt_in(week: int):
    data = json_body()
    participant_id = int_field(data, "participant_id")
    opted_in = bool_field(data, "opted_in", default=True)
    return jsonify(run(get_services().qualifier.set_opt_in(participant_id, week, opted_in)))


@prizes_bp.route("/<int:week>/preview-draw")
def preview_week(week: int):
    services = get_services()
    prize = run(services.raffle.resolve_week(week))
    return jsonify(run(services.raffle.preview(prize.id)))


@prizes_bp.route("/<int:week>/draw", methods=["POST"])
def draw_week(week: int):
    result = run(get_services().raffle.draw_week(week, announce=flag_arg("announce")))
    record_draw(result)
    return jsonify(result.to_dict())


@prizes_bp.route("/<int:week>/announce", methods=["POST"])
def announce_week(week: int):
    services = get_services()
    prize = run(services.raffle.resolve_week(week))
    return jsonify(run(services.raffle.announce_stored(prize)).to_dict())


@prizes_bp.route("/grand/preview")
def preview_grand():
    services = get_services()
    prize = run(services.raffle.resolve_grand())
    return jsonify(run(services.raffle.preview(prize.id)))


@prizes_bp.route("/grand/draw", methods=["POST"])
def draw_grand():
    result = run(get_services().raffle.draw_grand(announce=flag_arg("announce")))
    record_draw(result)
    return jsonify(result.to_dict())


@prizes_bp.route("/grand/announce", methods=["POST"])
def announce_grand():
    services = get_services()
    prize = run(services.raffle.resolve_grand())
    return jsonify(run(services.raffle.announce_stored(prize)).to_dict())
