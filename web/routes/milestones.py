"""Milestone status blueprint."""

from __future__ import annotations

from flask import Blueprint, jsonify

from web.context import get_services, run

milestones_bp = Blueprint("milestones", __name__, url_prefix="/api/milestones")


@milestones_bp.route("/<milestone_type>")
def milestone_status(milestone_type: str):
    return jsonify(run(get_services().milestones.get_status(milestone_type)))
