"""Leaderboards and progress."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from web.context import get_services, run

stats_bp = Blueprint("stats", __name__, url_prefix="/api/stats")


@stats_bp.route("/teams")
def team_standings():
    return jsonify(run(get_services().stats.team_standings()))


@stats_bp.route("/leaderboard")
def leaderboard():
    limit = request.args.get("limit", type=int)
    return jsonify(run(get_services().stats.leaderboard(limit)))


@stats_bp.route("/progress")
def progress():
    return jsonify(run(get_services().stats.progress()))
