"""Digest triggers for an external scheduler."""

from __future__ import annotations

from flask import Blueprint, jsonify

from web.context import date_arg, get_services, run

digests_bp = Blueprint("digests", __name__, url_prefix="/api/digests")


@digests_bp.route("/daily", methods=["POST"])
def daily_digest():
    return jsonify(run(get_services().digests.daily_digest()))


@digests_bp.route("/morning-recap", methods=["POST"])
def morning_recap():
    return jsonify(run(get_services().digests.morning_recap()))


@digests_bp.route("/preview/morning-recap/<day>")
def preview_morning_recap(day: str):
    return jsonify(run(get_services().digests.preview_morning_recap(date_arg(day))))
