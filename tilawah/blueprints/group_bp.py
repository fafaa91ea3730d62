"""Group blueprint.

Endpoints:
    GET    /api/v1/groups          list groups with counts
    POST   /api/v1/groups          create a group (generates the public token)
    GET    /api/v1/groups/<id>     group detail
    PATCH  /api/v1/groups/<id>     rename
    DELETE /api/v1/groups/<id>     delete (cascades)
"""

from flask import Blueprint, jsonify

import tilawah.services.group_service as gs
from tilawah.blueprints import json_body, register_error_handlers

group_bp = Blueprint("group", __name__, url_prefix="/api/v1")
register_error_handlers(group_bp)


@group_bp.route("/groups", methods=["GET"])
def list_groups():
    return jsonify(gs.list_groups()), 200


@group_bp.route("/groups", methods=["POST"])
def create_group():
    """Body: { name }"""
    data, err = json_body()
    if err:
        return err
    return jsonify(gs.create_group(data.get("name"))), 201


@group_bp.route("/groups/<int:group_id>", methods=["GET"])
def get_group(group_id):
    return jsonify(gs.get_group(group_id)), 200


@group_bp.route("/groups/<int:group_id>", methods=["PATCH"])
def update_group(group_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(gs.update_group(group_id, data)), 200


@group_bp.route("/groups/<int:group_id>", methods=["DELETE"])
def delete_group(group_id):
    gs.delete_group(group_id)
    return jsonify({"deleted": True}), 200
