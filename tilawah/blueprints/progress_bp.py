"""Progress blueprint: per-assignment status and slot changes.

Endpoints:
    PATCH /api/v1/progress/<assignment_id>        { status: pending | completed | missed }
    PATCH /api/v1/progress/<assignment_id>/slot   { slot_number: 1..30 }
"""

from flask import Blueprint, jsonify

import tilawah.services.progress_service as svc
from tilawah.blueprints import json_body, register_error_handlers

progress_bp = Blueprint("progress", __name__, url_prefix="/api/v1")
register_error_handlers(progress_bp)


@progress_bp.route("/progress/<int:assignment_id>", methods=["PATCH"])
def set_status(assignment_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(svc.set_status(assignment_id, data.get("status"))), 200


@progress_bp.route("/progress/<int:assignment_id>/slot", methods=["PATCH"])
def set_slot(assignment_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(svc.set_slot(assignment_id, data.get("slot_number"))), 200
