"""Participant blueprint.

Endpoints:
    GET    /api/v1/groups/<group_id>/participants        list (?include_inactive=true)
    POST   /api/v1/groups/<group_id>/participants        enroll one participant
    POST   /api/v1/groups/<group_id>/participants/bulk   enroll a batch (1..100)
    GET    /api/v1/participants/<id>                     detail
    PATCH  /api/v1/participants/<id>                     update name / contact / is_active
    DELETE /api/v1/participants/<id>                     deactivate (soft delete)
"""

from flask import Blueprint, jsonify

import tilawah.services.participant_service as ps
from tilawah import limiter
from tilawah.blueprints import json_body, query_flag, register_error_handlers
from tilawah.middleware.rate_limiter import BULK_LIMIT

participant_bp = Blueprint("participant", __name__, url_prefix="/api/v1")
register_error_handlers(participant_bp)


@participant_bp.route("/groups/<int:group_id>/participants", methods=["GET"])
def list_participants(group_id):
    return jsonify(ps.list_participants(group_id, include_inactive=query_flag("include_inactive"))), 200


@participant_bp.route("/groups/<int:group_id>/participants", methods=["POST"])
def enroll_participant(group_id):
    """Body: { name, contact? }

    Returns: { participant, assignment }; assignment is null when no period is active.
    """
    data, err = json_body()
    if err:
        return err
    return jsonify(ps.enroll(group_id, data.get("name"), data.get("contact"))), 201


@participant_bp.route("/groups/<int:group_id>/participants/bulk", methods=["POST"])
@limiter.limit(BULK_LIMIT)
def enroll_participants_bulk(group_id):
    """Body: { participants: [{ name, contact? }, ...] }"""
    data, err = json_body()
    if err:
        return err
    return jsonify(ps.enroll_bulk(group_id, data.get("participants"))), 201


@participant_bp.route("/participants/<int:participant_id>", methods=["GET"])
def get_participant(participant_id):
    return jsonify(ps.get_participant(participant_id)), 200


@participant_bp.route("/participants/<int:participant_id>", methods=["PATCH"])
def update_participant(participant_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(ps.update_participant(participant_id, data)), 200


@participant_bp.route("/participants/<int:participant_id>", methods=["DELETE"])
def deactivate_participant(participant_id):
    return jsonify(ps.deactivate_participant(participant_id)), 200
