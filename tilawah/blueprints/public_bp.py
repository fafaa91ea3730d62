"""Public read-only blueprint, addressed by a group's public token.

Endpoints:
    GET /api/v1/public/<token>                         group + active period totals
    GET /api/v1/public/<token>/periods                 locked periods (last 52)
    GET /api/v1/public/<token>/periods/<period_id>     one period with assignments
"""

from flask import Blueprint, jsonify

import tilawah.services.public_service as svc
from tilawah.blueprints import register_error_handlers

public_bp = Blueprint("public", __name__, url_prefix="/api/v1/public")
register_error_handlers(public_bp)


@public_bp.route("/<token>", methods=["GET"])
def overview(token):
    return jsonify(svc.get_public_overview(token)), 200


@public_bp.route("/<token>/periods", methods=["GET"])
def periods(token):
    return jsonify(svc.list_public_periods(token)), 200


@public_bp.route("/<token>/periods/<int:period_id>", methods=["GET"])
def period_detail(token, period_id):
    return jsonify(svc.get_public_period(token, period_id)), 200
