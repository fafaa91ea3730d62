"""Period blueprint.

Endpoints:
    GET  /api/v1/groups/<group_id>/periods   list periods (?limit=N), newest first
    POST /api/v1/groups/<group_id>/periods   open the next period
    GET  /api/v1/periods/<id>                detail with assignments grouped by slot
    POST /api/v1/periods/<id>/lock           lock: pending → missed, freeze
    POST /api/v1/periods/<id>/share          WhatsApp share text + wa.me link
"""

from flask import Blueprint, jsonify, request

import tilawah.services.period_service as svc
from tilawah.blueprints import json_body, query_limit, register_error_handlers

period_bp = Blueprint("period", __name__, url_prefix="/api/v1")
register_error_handlers(period_bp)


@period_bp.route("/groups/<int:group_id>/periods", methods=["GET"])
def list_periods(group_id):
    return jsonify(svc.list_periods(group_id, limit=query_limit())), 200


@period_bp.route("/groups/<int:group_id>/periods", methods=["POST"])
def open_period(group_id):
    """Body: { start_date: "YYYY-MM-DD" }"""
    data, err = json_body()
    if err:
        return err
    return jsonify(svc.open_period(group_id, data.get("start_date"))), 201


@period_bp.route("/periods/<int:period_id>", methods=["GET"])
def get_period(period_id):
    return jsonify(svc.get_period(period_id)), 200


@period_bp.route("/periods/<int:period_id>/lock", methods=["POST"])
def lock_period(period_id):
    return jsonify(svc.lock_period(period_id)), 200


@period_bp.route("/periods/<int:period_id>/share", methods=["POST"])
def share_period(period_id):
    """Body (optional): { custom_message }"""
    data = request.get_json(silent=True) or {}
    return jsonify(svc.build_share_message(period_id, data.get("custom_message"))), 200
