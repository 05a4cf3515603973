from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from pairpost.errors import PairpostError
from pairpost.schemas.post_schema import partner_request_schema, user_summary_schema
from pairpost.services import partner_service


partner_bp = Blueprint("partners", __name__)


def _error(e: PairpostError):
    return jsonify({"message": e.message}), e.status_code


@partner_bp.route("/partner", methods=["GET"])
@jwt_required()
def get_partner():
    try:
        partner = partner_service.get_partner(get_jwt_identity())
    except PairpostError as e:
        return _error(e)

    return jsonify({"partner": user_summary_schema.dump(partner) if partner else None}), 200


@partner_bp.route("/partner", methods=["DELETE"])
@jwt_required()
def unpair():
    try:
        removed = partner_service.unpair(get_jwt_identity())
    except PairpostError as e:
        return _error(e)

    return jsonify(
        {"message": "Unpaired"} if removed else {"message": "No partner"}
    ), 200


@partner_bp.route("/partner/requests/<username>", methods=["POST"])
@jwt_required()
def send_request(username):
    try:
        created = partner_service.send_request(get_jwt_identity(), username)
    except PairpostError as e:
        return _error(e)

    if created:
        return jsonify({"message": "Partner request sent"}), 201
    return jsonify({"message": "Partner request already pending"}), 200


@partner_bp.route("/partner/requests", methods=["GET"])
@jwt_required()
def list_requests():
    try:
        requests = partner_service.list_incoming(get_jwt_identity())
    except PairpostError as e:
        return _error(e)

    return jsonify(partner_request_schema.dump(requests, many=True)), 200


@partner_bp.route("/partner/requests/<int:request_id>/accept", methods=["POST"])
@jwt_required()
def accept_request(request_id):
    try:
        partner = partner_service.accept_request(get_jwt_identity(), request_id)
    except PairpostError as e:
        return _error(e)

    return jsonify({"message": "Partner linked", "partner": user_summary_schema.dump(partner)}), 200


@partner_bp.route("/partner/requests/<int:request_id>", methods=["DELETE"])
@jwt_required()
def decline_request(request_id):
    try:
        partner_service.decline_request(get_jwt_identity(), request_id)
    except PairpostError as e:
        return _error(e)

    return jsonify({"message": "Partner request declined"}), 200
